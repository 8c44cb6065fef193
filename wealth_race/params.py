"""Asset catalog, difficulty profiles and game tuning parameters."""

from dataclasses import dataclass, field
from enum import Enum

# Session length (wall-clock ms of unpaused play)
GAME_DURATION_MS = 600_000  # 10 minutes
TIME_HORIZON_YEARS = 10
MONTHS_PER_YEAR = 12


class AssetClass(str, Enum):
    TRADITIONAL = "traditional"
    STOCK = "stock"
    CRYPTO = "crypto"
    REAL_ESTATE = "real_estate"


class Asset(str, Enum):
    """Closed catalog of holding keys. Declaration order is liquidation order."""

    SAVINGS = "savings"
    FIXED_DEPOSIT = "fixed_deposit"
    INDEX_FUND = "index_fund"
    GOLD = "gold"
    RELIANCE = "RELIANCE"
    TCS = "TCS"
    HDFCBANK = "HDFCBANK"
    INFY = "INFY"
    BTC = "BTC"
    ETH = "ETH"
    SOL = "SOL"
    MUMBAI_APT = "MUMBAI_APT"
    BLR_VILLA = "BLR_VILLA"
    PUNE_PLOT = "PUNE_PLOT"


# Downside bound relative to base price, per tradable class
FLOOR_RATIOS: dict[AssetClass, float] = {
    AssetClass.STOCK: 0.5,
    AssetClass.CRYPTO: 0.3,
    AssetClass.REAL_ESTATE: 0.7,
}


@dataclass(frozen=True)
class TraditionalSpec:
    """Pooled instrument tracked by value only."""

    display_name: str
    annual_rate: float
    # Relative perturbation of the monthly rate (0.5 = ±50%)
    rate_volatility: float


@dataclass(frozen=True)
class InstrumentSpec:
    """Tradable instrument with a unit price."""

    display_name: str
    asset_class: AssetClass
    base_price: float
    volatility: float  # max relative monthly move

    @property
    def floor_ratio(self) -> float:
        return FLOOR_RATIOS[self.asset_class]

    @property
    def floor_price(self) -> float:
        return self.base_price * self.floor_ratio


TRADITIONAL_ASSETS: dict[Asset, TraditionalSpec] = {
    Asset.SAVINGS: TraditionalSpec("Savings Account", 0.04, 0.5),
    Asset.FIXED_DEPOSIT: TraditionalSpec("Fixed Deposit", 0.065, 0.5),
    Asset.INDEX_FUND: TraditionalSpec("Nifty 50 Index Fund", 0.11, 2.5),
    Asset.GOLD: TraditionalSpec("Gold", 0.08, 1.5),
}

INSTRUMENTS: dict[Asset, InstrumentSpec] = {
    Asset.RELIANCE: InstrumentSpec("Reliance Industries", AssetClass.STOCK, 2500.0, 0.06),
    Asset.TCS: InstrumentSpec("Tata Consultancy Services", AssetClass.STOCK, 3500.0, 0.05),
    Asset.HDFCBANK: InstrumentSpec("HDFC Bank", AssetClass.STOCK, 1600.0, 0.05),
    Asset.INFY: InstrumentSpec("Infosys", AssetClass.STOCK, 1450.0, 0.07),
    Asset.BTC: InstrumentSpec("Bitcoin", AssetClass.CRYPTO, 2_500_000.0, 0.18),
    Asset.ETH: InstrumentSpec("Ethereum", AssetClass.CRYPTO, 150_000.0, 0.22),
    Asset.SOL: InstrumentSpec("Solana", AssetClass.CRYPTO, 8_000.0, 0.30),
    Asset.MUMBAI_APT: InstrumentSpec("Mumbai Apartment Unit", AssetClass.REAL_ESTATE, 120_000.0, 0.03),
    Asset.BLR_VILLA: InstrumentSpec("Bengaluru Villa Unit", AssetClass.REAL_ESTATE, 90_000.0, 0.025),
    Asset.PUNE_PLOT: InstrumentSpec("Pune Plot Unit", AssetClass.REAL_ESTATE, 50_000.0, 0.02),
}


def asset_class(asset: Asset) -> AssetClass:
    if asset in INSTRUMENTS:
        return INSTRUMENTS[asset].asset_class
    return AssetClass.TRADITIONAL


def is_tradable(asset: Asset) -> bool:
    return asset in INSTRUMENTS


@dataclass(frozen=True)
class DifficultyProfile:
    """Player economy and AI tuning, fixed once a game starts."""

    name: str
    salary: float                 # annual
    starting_cash: float
    passive_income_target: float  # monthly dividend income to aim for
    time_horizon_years: int = TIME_HORIZON_YEARS
    salary_increment: float = 0.05  # annual appraisal raise

    # AI opponent: higher difficulty = higher return and higher volatility
    ai_salary: float = 0.0
    ai_base_return: float = 0.08
    ai_investment_ratio: float = 0.65
    ai_volatility: float = 0.10


DIFFICULTIES: dict[str, DifficultyProfile] = {
    "easy": DifficultyProfile(
        name="easy",
        salary=600_000,
        starting_cash=200_000,
        passive_income_target=30_000,
        salary_increment=0.08,
        ai_salary=500_000,
        ai_base_return=0.08,
        ai_investment_ratio=0.65,
        ai_volatility=0.10,
    ),
    "medium": DifficultyProfile(
        name="medium",
        salary=480_000,
        starting_cash=150_000,
        passive_income_target=40_000,
        salary_increment=0.06,
        ai_salary=550_000,
        ai_base_return=0.10,
        ai_investment_ratio=0.80,
        ai_volatility=0.15,
    ),
    "hard": DifficultyProfile(
        name="hard",
        salary=360_000,
        starting_cash=100_000,
        passive_income_target=50_000,
        salary_increment=0.05,
        ai_salary=600_000,
        ai_base_return=0.12,
        ai_investment_ratio=0.90,
        ai_volatility=0.20,
    ),
}


def get_difficulty(name: str) -> DifficultyProfile:
    """Look up a difficulty profile by name. Raises ValueError if unknown."""
    try:
        return DIFFICULTIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown difficulty '{name}' (expected one of: {', '.join(DIFFICULTIES)})"
        ) from None


@dataclass
class GameConfig:
    """Tunable constants for the simulation loop."""

    game_duration_ms: float = GAME_DURATION_MS
    tick_interval_ms: float = 100.0

    # Event scheduler (per processed tick)
    expense_probability: float = 0.004
    income_probability: float = 0.006
    min_event_interval_ms: float = 15_000
    event_grace_ms: float = 60_000
    income_requires_ack: bool = False

    # Return accrual
    profit_share: float = 0.7  # compounding share; remainder paid as cash dividend
    return_noise: bool = True

    # AI opponent
    ai_bonus_probability: float = 0.08
    ai_bonus_multipliers: tuple[float, ...] = field(
        default_factory=lambda: (0.05, 0.08, 0.10, 0.12, 0.15)
    )
    ai_annual_bonus_ratio: float = 0.12

    def ms_per_month(self, horizon_years: int) -> float:
        """Game-time length of one simulated month for a given horizon."""
        return self.game_duration_ms / (horizon_years * MONTHS_PER_YEAR)
