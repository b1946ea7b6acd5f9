#!/usr/bin/env python3
"""
Vehicle Readiness Dashboard Startup Script
Checks the configuration and starts the FastAPI server
"""

import os
import sys

def check_requirements():
    """Check if required packages are installed"""
    try:
        import fastapi
        import uvicorn
        import jinja2
        import aiofiles
        import sqlalchemy
        import openpyxl
        print("✅ All required packages are available")
        return True
    except ImportError as e:
        print(f"❌ Missing required package: {e.name}")
        print("Please run: pip install -e .")
        return False

def describe_integrations():
    from fleet_services.config import fleet_settings

    integrations = [
        ("Admin PIN", bool(fleet_settings.admin_pin)),
        ("Cloudinary", fleet_settings.cloudinary_configured),
        ("Google Drive backup", fleet_settings.google_drive_configured),
        ("Google Sheets log", fleet_settings.google_sheets_configured),
        ("Email notifications", fleet_settings.email_configured),
        ("Local photo storage", fleet_settings.local_uploads_enabled),
    ]
    for name, enabled in integrations:
        print(f"   {'✅' if enabled else '➖'} {name}")

def main():
    print("🚗 Vehicle Readiness Dashboard Startup")
    print("="*50)

    # Check if we're in the right directory
    if not os.path.exists('app.py'):
        print("❌ Please run this script from the project directory")
        return

    # Check requirements
    if not check_requirements():
        return

    # Check database configuration
    print("📊 Checking database configuration...")
    try:
        from database import get_database_manager
        db_manager = get_database_manager()
        print(f"   Database URL: {db_manager.db_url.split('@')[-1]}")
        print("   Connection: OK")
    except Exception as e:
        print(f"   Error: database connection failed: {e}")
        print("   Please check DATABASE_URL or the POSTGRES_* settings in your .env file")
        return

    print("🔌 Integrations:")
    describe_integrations()

    port = int(os.getenv("PORT", "9000"))
    print("\n🚀 Starting FastAPI dashboard server...")
    print(f"📱 Dashboard URL: http://localhost:{port}")
    print(f"📖 API Documentation: http://localhost:{port}/api/docs")
    print("\n💡 Tip: Press Ctrl+C to stop the server")
    print("="*50)

    # Start the FastAPI app
    try:
        import uvicorn
        uvicorn.run(
            "app:app",
            host="0.0.0.0",
            port=port,
            reload=False,
            log_level="info"
        )
    except KeyboardInterrupt:
        print("\n\n👋 FastAPI dashboard server stopped")
    except Exception as e:
        print(f"\n❌ Error starting dashboard: {e}")
        sys.exit(1)

if __name__ == '__main__':
    main()
