#!/usr/bin/env python3
"""
Setup Script for the Vehicle Readiness Dashboard
Creates the database tables and optionally writes the Google Sheets header row.
"""

import sys
from database import get_database_manager
from fleet_services.config import fleet_settings
from fleet_services.sheets_backup import SheetsBackupService

def main():
    """Main setup function"""
    print("=== Vehicle Readiness Dashboard Setup ===")
    print()

    try:
        # Initialize database manager (creates missing tables)
        print("🔧 Initializing database connection...")
        db_manager = get_database_manager()
        db_manager.create_tables()
        print(f"✅ Database ready: {db_manager.db_url.split('@')[-1]}")
        print(f"   Vehicles: {db_manager.count_vehicles()}")

        if not fleet_settings.admin_pin:
            print("\n⚠️  ADMIN_PIN is not set. Add it to your .env to enable vehicle registration.")

        # Google Sheets inspection log
        sheets = SheetsBackupService()
        if sheets.enabled:
            response = input("\nWrite the header row to the Google Sheets log? (y/n): ").lower().strip()
            if response == 'y':
                if sheets.initialize_sheet_headers():
                    print(f"✅ Header row written to sheet '{sheets.sheet_name}'")
                else:
                    print("❌ Could not write the header row; check the service account permissions")
        else:
            print("\nℹ️  Google Sheets backup is not configured (GOOGLE_SERVICE_ACCOUNT_EMAIL, GOOGLE_PRIVATE_KEY, GOOGLE_SHEETS_ID)")

        print("\n✅ Setup completed successfully!")
        print("🌐 Start the dashboard with: python run_dashboard.py")
        print()

    except KeyboardInterrupt:
        print("\n\n⏹️  Setup cancelled by user")
        sys.exit(1)
    except Exception as e:
        print(f"\n❌ Error during setup: {e}")
        sys.exit(1)

if __name__ == "__main__":
    main()
