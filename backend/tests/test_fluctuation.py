"""Tests for fallback price fluctuation."""

import random
from decimal import Decimal

from agriconnect.services.prices.fluctuation import generate_fluctuated_prices, perturb_price


def test_perturbation_stays_within_bounds() -> None:
    rng = random.Random(42)
    for _ in range(1000):
        moved = perturb_price(Decimal("10.00"), rng, 3)
        assert Decimal("9.70") <= moved <= Decimal("10.30")
        assert moved == moved.quantize(Decimal("0.01"))


def test_perturbation_is_deterministic_for_seed() -> None:
    assert perturb_price(Decimal("5.00"), random.Random(7)) == perturb_price(Decimal("5.00"), random.Random(7))


def test_one_update_per_stored_price(db, reference_data, make_price) -> None:
    crops, regions = reference_data["crops"], reference_data["regions"]
    make_price(crops["Maize"], regions["Gaborone"], 4.5)
    make_price(crops["Beans"], regions["Maun"], 12)

    updates = generate_fluctuated_prices(db, random.Random(1), 3)

    assert len(updates) == 2
    by_crop = {u.crop_name: u for u in updates}
    assert by_crop["Maize"].old_price == Decimal("4.50")
    assert by_crop["Maize"].region_name == "Gaborone"
    assert by_crop["Beans"].old_price == Decimal("12.00")
    assert Decimal("11.64") <= by_crop["Beans"].price <= Decimal("12.36")


def test_no_stored_prices_yields_nothing(db, reference_data) -> None:
    assert generate_fluctuated_prices(db, random.Random(1)) == []
