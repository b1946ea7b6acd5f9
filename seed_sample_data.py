#!/usr/bin/env python3
"""
Script to add sample vehicles and inspections for trying out the dashboard
"""

from datetime import timedelta

from database import get_database_manager, utc_now


def create_sample_data():
    db_manager = get_database_manager()

    # Sample checklist answers for a wash/inspection
    wash_details = {
        'carWash': '완료',
        'battery': '정상',
        'wiperWasher': ['와이퍼 정상', '워셔액 보충'],
        'warningLights': [],
        'tires': {'FL': '정상', 'FR': '정상', 'RL': '마모', 'RR': '정상'},
    }

    # Sample return condition answers
    return_details = {
        'contamination': '보통',
        'exteriorDamage': ['앞범퍼 스크래치'],
        'interiorContamination': ['뒷좌석 얼룩'],
    }

    sample_vehicles = [
        {
            'vehicle_number': '12가3456',
            'owner_name': 'G80 Black',
            'model': 'G80',
            'manufacturer': '제네시스',
            'vehicle_type': '세단',
            'engine': '2.5T',
            'year': 2025,
            'fuel': '가솔린',
        },
        {
            'vehicle_number': '34나7890',
            'owner_name': 'GV80 White',
            'model': 'GV80',
            'manufacturer': '제네시스',
            'vehicle_type': 'SUV',
            'engine': '3.5T',
            'year': 2026,
            'fuel': '가솔린',
        },
        {
            'vehicle_number': '56다1234',
            'owner_name': 'EV9 Gray',
            'model': 'EV9',
            'manufacturer': '기아',
            'vehicle_type': 'SUV',
            'year': 2024,
            'fuel': '전기',
        },
    ]

    created = []
    for vehicle in sample_vehicles:
        if db_manager.get_vehicle_by_number(vehicle['vehicle_number']):
            print(f"⚠️  {vehicle['vehicle_number']} already exists, skipping")
            continue
        created.append(db_manager.create_vehicle(vehicle))

    now = utc_now()
    for index, vehicle in enumerate(created):
        db_manager.create_inspection(
            {
                'vehicle_id': vehicle['id'],
                'inspection_date': now - timedelta(days=index + 1, hours=2),
                'inspection_type': '세차점검',
                'overall_status': '양호',
                'inspector': '김점검',
                'details': wash_details,
            },
            areas=[
                {'area_category': '외관', 'area_name': '앞범퍼', 'status': '양호'},
                {'area_category': '실내', 'area_name': '운전석', 'status': '양호'},
            ],
        )
        if index == 0:
            db_manager.create_inspection(
                {
                    'vehicle_id': vehicle['id'],
                    'inspection_date': now - timedelta(hours=3),
                    'inspection_type': '반납상태',
                    'overall_status': '보통',
                    'inspector': '김점검',
                    'memo': '앞범퍼 스크래치 확인 필요',
                    'details': return_details,
                },
                areas=[{'area_category': '외관', 'area_name': '앞범퍼', 'status': '불량', 'memo': '스크래치'}],
            )

    print(f"✅ Added {len(created)} sample vehicles to the database")
    print("Sample vehicles:")
    for vehicle in created:
        print(f"  - {vehicle['vehicleNumber']}: {vehicle['ownerName']}")

if __name__ == '__main__':
    create_sample_data()
