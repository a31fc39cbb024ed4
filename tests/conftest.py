import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bnbmargins.data_access.store import Store  # noqa: E402

OWNER = "owner-a"


@pytest.fixture()
def store(tmp_path: Path) -> Store:
    store = Store(tmp_path / "store.db")
    store.initialize()
    return store


@pytest.fixture()
def loft(store: Store) -> dict:
    result = store.properties.create(
        {"name": "Downtown Loft", "property_type": "apartment", "bedrooms": 2, "max_guests": 4},
        OWNER,
    )
    assert result.ok, result.error
    return result.data
