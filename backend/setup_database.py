#!/usr/bin/env python3
"""Create the schema and optionally seed demo data."""
import sys
import uuid
from decimal import Decimal
from pathlib import Path

# Add app to path
sys.path.insert(0, str(Path(__file__).parent))

from coffee_ledger.database import Base, SessionLocal, engine
from coffee_ledger.models import Cooperative, Farmer, User
from coffee_ledger.schemas import LotCreate
from coffee_ledger.use_cases.lot_registry import create_lot_use_case


def create_schema():
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=engine)
    print("✅ Schema created")


def seed():
    """Seed database with demo data."""
    db = SessionLocal()

    try:
        if db.query(Cooperative).first():
            print("⏭️ Cooperatives already present, skipping seed")
            return

        coop = Cooperative(
            id=uuid.UUID('00000000-0000-0000-0000-000000000001'),
            name="Othaya Farmers Cooperative",
            location="Nyeri",
            contact_phone="+254700000001",
        )
        db.add(coop)
        db.flush()

        users_data = [
            {
                'id': uuid.UUID('00000000-0000-0000-0000-000000000101'),
                'name': 'Wanjiku Kamau',
                'phone': '+254700000101',
                'role': 'farmer',
            },
            {
                'id': uuid.UUID('00000000-0000-0000-0000-000000000102'),
                'name': 'Gikanda Wet Mill',
                'phone': '+254700000102',
                'role': 'mill',
            },
            {
                'id': uuid.UUID('00000000-0000-0000-0000-000000000103'),
                'name': 'Nairobi Coffee Exporters',
                'email': 'trade@exporters.example',
                'role': 'exporter',
            },
        ]
        for user_data in users_data:
            db.add(User(cooperative_id=coop.id, **user_data))
        db.flush()

        farmer = Farmer(
            id=uuid.UUID('00000000-0000-0000-0000-000000000201'),
            user_id=uuid.UUID('00000000-0000-0000-0000-000000000101'),
            farm_id='FARM-001',
            farm_size=Decimal('2.50'),
            location='Othaya',
            cooperative_id=coop.id,
        )
        db.add(farmer)
        db.commit()
        print(f"✅ Created cooperative {coop.name} with {len(users_data)} users")

        lot = create_lot_use_case(
            db=db,
            data=LotCreate(farmer_id=farmer.id, quantity=Decimal('50.00'), processing_method='wet'),
        )
        print(f"✅ Created lot {lot.lot_id}")

    except Exception as e:
        print(f"❌ Error seeding data: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    create_schema()
    if "--seed" in sys.argv:
        seed()
