import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bnbmargins.data_access.store import create_client, create_service_client  # noqa: E402
from bnbmargins.utils.config import StoreConfigError, load_config  # noqa: E402


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    names = (
        "BNB_STORE_URL", "BNB_REPORTS_DIR", "BNB_ANON_KEY", "BNB_SERVICE_ROLE_KEY", "BNB_LOG_LEVEL", "BNB_FEE_MODEL",
    )
    for name in names:
        monkeypatch.delenv(name, raising=False)


def test_paths_default_under_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BNB_DATA_DIR", str(tmp_path))
    config = load_config()

    assert config.data_dir == tmp_path
    assert config.store_url == tmp_path / "bnbmargins.db"
    assert config.reports_dir == tmp_path / "reports"
    assert config.log_level == "INFO"
    assert config.fee_model == "split"


def test_override_and_env_values(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BNB_STORE_URL", str(tmp_path / "custom.db"))
    monkeypatch.setenv("BNB_LOG_LEVEL", "debug")
    monkeypatch.setenv("BNB_FEE_MODEL", "Host-Only")
    config = load_config(str(tmp_path / "other"))

    assert config.data_dir == tmp_path / "other"
    assert config.store_url == tmp_path / "custom.db"
    assert config.log_level == "DEBUG"
    assert config.fee_model == "host-only"


def test_missing_anon_key_names_variable(tmp_path: Path) -> None:
    config = load_config(str(tmp_path))

    with pytest.raises(StoreConfigError, match="BNB_ANON_KEY"):
        create_client(config)


def test_service_client_requires_service_key(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BNB_ANON_KEY", "anon")
    config = load_config(str(tmp_path))

    with pytest.raises(StoreConfigError, match="BNB_SERVICE_ROLE_KEY"):
        create_service_client(config)

    monkeypatch.setenv("BNB_SERVICE_ROLE_KEY", "service")
    store = create_service_client(load_config(str(tmp_path)))
    assert store.privileged
    assert (tmp_path / "bnbmargins.db").exists()
