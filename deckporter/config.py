from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(env_file=".env", env_prefix="DECKPORTER_")

    app_name: str = "Deckporter"
    debug: bool = False

    database_url: str = "sqlite+aiosqlite:///./deckporter.db"

    scryfall_base_url: str = "https://api.scryfall.com"
    user_agent: str = "Deckporter/1.0"
    request_timeout: float = 10.0

    # Pacing for the batch orchestrator (Scryfall asks for 50-100ms between requests)
    batch_size: int = 5
    card_delay_seconds: float = 0.1
    batch_delay_seconds: float = 0.25

    fuzzy_match_enabled: bool = True
    fuzzy_max_distance: int = 2
    fuzzy_candidate_limit: int = 10

    first_card_heuristic: bool = True
    allow_partners: bool = True


settings = Settings()


# =============================================================================
# DECK SIZE BAND
# =============================================================================

# Conventional Commander deck size band; outside it the import only warns
MIN_DECK_SIZE = 50
MAX_DECK_SIZE = 100


# =============================================================================
# COMMANDER HEURISTICS
# =============================================================================

# Oracle text fragments that let two cards share the command zone
PARTNER_KEYWORDS = ("partner", "choose a background", "friends forever")

# Words that end the commander part of an MTGA "Name <commander> <theme>" header
DECK_THEME_WORDS = frozenset(
    {
        "army",
        "tribal",
        "control",
        "aggro",
        "combo",
        "midrange",
        "tempo",
        "ramp",
        "voltron",
        "tokens",
        "artifacts",
        "enchantments",
        "spells",
        "creatures",
        "lands",
        "deck",
        "build",
        "theme",
        "mech",
        "vehicle",
        "vehicles",
        "artifact",
        "storm",
        "burn",
        "lifegain",
        "mill",
        "reanimator",
        "superfriends",
        "goodstuff",
    }
)
