"""
Seed crops, regions and starting market prices.

Prices are Botswana Pula per kg with a regional modifier and a little random
variance, so the first sync has something to compare against.
"""
import random
import sys
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from agriconnect.core.database import Base, SessionLocal, engine
from agriconnect.models import Crop, Region, Price
from agriconnect.services.prices.price_models import round_price

# name: (category, base price, variance)
CROPS = {
    "Maize": ("grains", 4.50, 0.5),
    "Sorghum": ("grains", 5.00, 0.6),
    "Millet": ("grains", 6.50, 0.7),
    "Cowpeas": ("legumes", 12.00, 1.5),
    "Groundnuts": ("legumes", 18.00, 2.0),
    "Beans": ("legumes", 15.00, 1.8),
    "Tomatoes": ("vegetables", 8.50, 1.2),
    "Onions": ("vegetables", 7.00, 0.8),
    "Cabbage": ("vegetables", 5.50, 0.6),
    "Spinach": ("vegetables", 12.00, 1.5),
    "Carrots": ("vegetables", 9.00, 1.0),
    "Potatoes": ("vegetables", 6.50, 0.7),
    "Butternut": ("vegetables", 7.50, 0.8),
    "Watermelon": ("fruits", 3.50, 0.4),
    "Oranges": ("fruits", 8.00, 0.9),
}

# name: (price modifier, latitude, longitude)
REGIONS = {
    "Gaborone": (1.05, -24.6282, 25.9231),
    "Francistown": (1.02, -21.1700, 27.5078),
    "Maun": (1.00, -19.9833, 23.4167),
    "Molepolole": (0.98, -24.4067, 25.4950),
    "Serowe": (0.97, -22.3875, 26.7108),
    "Central": (0.96, None, None),
    "Kweneng": (0.98, None, None),
    "Chobe": (0.94, -17.8000, 25.1500),
}


def generate_price(base: float, variance: float, modifier: float, rng: random.Random) -> Decimal:
    return round_price((base + rng.uniform(-variance, variance)) * modifier)


def seed(rng: random.Random = None):
    rng = rng or random.Random()
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        crops = {}
        for name, (category, _, _) in CROPS.items():
            crop = db.query(Crop).filter(Crop.name == name).first()
            if not crop:
                crop = Crop(name=name, category=category)
                db.add(crop)
            crops[name] = crop

        regions = {}
        for name, (_, latitude, longitude) in REGIONS.items():
            region = db.query(Region).filter(Region.name == name).first()
            if not region:
                region = Region(name=name, latitude=latitude, longitude=longitude)
                db.add(region)
            regions[name] = region
        db.commit()

        created = 0
        for crop_name, (_, base, variance) in CROPS.items():
            for region_name, (modifier, _, _) in REGIONS.items():
                crop, region = crops[crop_name], regions[region_name]
                exists = db.query(Price).filter(
                    Price.crop_id == crop.id, Price.region_id == region.id
                ).first()
                if exists:
                    continue
                price = generate_price(base, variance, modifier, rng)
                # Previous price within +/-5% so the UI shows a change from day one
                previous = round_price(price * (1 - Decimal(str(rng.uniform(-0.05, 0.05)))))
                db.add(Price(crop_id=crop.id, region_id=region.id, price=price, previous_price=previous, unit="kg"))
                created += 1
        db.commit()
        print(f"✅ Seeded {len(crops)} crops, {len(regions)} regions, {created} new prices")
    except Exception as e:
        db.rollback()
        print(f"❌ Error seeding prices: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
