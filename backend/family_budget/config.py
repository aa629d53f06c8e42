import json
import os
from pathlib import Path

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel

from .logging import get_logger

logger = get_logger(__name__)

DEFAULT_FNS_API_URL = "https://proverkacheka.com/api/v1/check/get"
DEFAULT_CLAUDE_MODEL = "claude-3-haiku-20240307"
DEFAULT_CORS_ORIGINS = ["http://localhost:5173", "http://127.0.0.1:5173"]


class SeedCategory(BaseModel):
    """A category inserted into an empty store on startup."""
    name: str
    description: str = ""
    color: str
    monthly_limit: int = 0


# Default category list for an empty store, limits in kopecks
DEFAULT_CATEGORIES: list[SeedCategory] = [
    SeedCategory(name="Бакалея", description="Крупы, макароны, рис, гречка, нут, долгие углеводы", color="#6b7280", monthly_limit=0),
    SeedCategory(name="Белок", description="Мясо, птица, рыба, морепродукты, яйца", color="#3b82f6", monthly_limit=0),
    SeedCategory(name="Бытовая химия", description="Средства для уборки, тряпки, салфетки и так далее", color="#ef4444", monthly_limit=0),
    SeedCategory(name="Джанг-фуд", description="Чипсы, мармелад, сладости, снеки. Всё вредное и вкусное", color="#8b5cf6", monthly_limit=4000),
    SeedCategory(name="Молочная продукция", description="Молоко (альтернативное и коровье), сливочное масло, сливки, творог и так далее", color="#3b82f6", monthly_limit=0),
    SeedCategory(name="Овощи, фрукты", description="Замороженные, консервированные, свежие", color="#10b981", monthly_limit=0),
    SeedCategory(name="Прочее", description="Все остальные траты", color="#6b7280", monthly_limit=100),
    SeedCategory(name="Развлечения", description="Кино, рестораны, кафе, досуг", color="#8b5cf6", monthly_limit=0),
    SeedCategory(name="Сервис", description="Оплата за доставку, пакеты и так далее", color="#3b82f6", monthly_limit=0),
    SeedCategory(name="Чай, кофе", description="Кофе, чай, травяные напитки", color="#22c55e", monthly_limit=0),
]


class Settings(BaseModel):
    """Application settings, normally built from environment variables."""
    data_dir: Path
    store_backend: str = "json"
    sqlite_path: Path | None = None
    seed_file: Path | None = None

    fns_api_url: str = DEFAULT_FNS_API_URL
    fns_api_token: str | None = None

    claude_api_key: str | None = None
    claude_model: str = DEFAULT_CLAUDE_MODEL

    session_key: str = "budget-secret-key-change-in-production"
    pin_egor: str = "1329"
    pin_syoma: str = "3415"

    environment: str = "development"
    cors_origins: list[str] = DEFAULT_CORS_ORIGINS

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def database_path(self) -> Path:
        """SQLite file used when the sqlite backend is selected."""
        return self.sqlite_path or self.data_dir / "budget.db"

    def pins(self) -> dict[str, str]:
        """Map of PIN code to participant role."""
        return {self.pin_egor: "egor", self.pin_syoma: "syoma"}


def load_settings() -> Settings:
    """Build settings from the environment, reading a .env file if present."""
    load_dotenv(find_dotenv(usecwd=True))

    data_dir = Path(os.environ.get("BUDGET_DATA_DIR", "data"))
    sqlite_path = os.environ.get("BUDGET_SQLITE_PATH")
    seed_file = os.environ.get("BUDGET_SEED_FILE")
    origins = os.environ.get("BUDGET_CORS_ORIGINS")

    values = {
        "data_dir": data_dir,
        "store_backend": os.environ.get("BUDGET_STORE_BACKEND", "json").lower(),
        "sqlite_path": Path(sqlite_path) if sqlite_path else None,
        "seed_file": Path(seed_file) if seed_file else None,
        "fns_api_url": os.environ.get("FNS_API_URL", DEFAULT_FNS_API_URL),
        "fns_api_token": os.environ.get("FNS_API_TOKEN") or None,
        "claude_api_key": os.environ.get("CLAUDE_API_KEY") or None,
        "claude_model": os.environ.get("CLAUDE_MODEL", DEFAULT_CLAUDE_MODEL),
        "environment": os.environ.get("BUDGET_ENV", "development").lower(),
    }
    if os.environ.get("SESSION_KEY"):
        values["session_key"] = os.environ["SESSION_KEY"]
    if os.environ.get("BUDGET_PIN_EGOR"):
        values["pin_egor"] = os.environ["BUDGET_PIN_EGOR"]
    if os.environ.get("BUDGET_PIN_SYOMA"):
        values["pin_syoma"] = os.environ["BUDGET_PIN_SYOMA"]
    if origins:
        values["cors_origins"] = [o.strip() for o in origins.split(",") if o.strip()]

    return Settings(**values)


def load_seed_categories(seed_file: Path | None = None) -> list[SeedCategory]:
    """
    Load the category seed list.

    A configured seed file replaces the built-in list; an unreadable file
    falls back to the defaults.
    """
    if seed_file is None:
        return list(DEFAULT_CATEGORIES)

    try:
        with open(seed_file, "r", encoding="utf-8") as f:
            data = json.load(f)
        return [SeedCategory(**item) for item in data]
    except (OSError, json.JSONDecodeError, TypeError, ValueError) as e:
        logger.warning(f"Could not read seed file {seed_file}: {e}; using defaults")
        return list(DEFAULT_CATEGORIES)
