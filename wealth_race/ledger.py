"""Portfolio ledger: cash, principal/profit per asset, owned units.

All commands validate first and mutate second, so a rejected command leaves
the ledger untouched. Rejections raise InvalidCommand (a ValueError).
"""

import math
from dataclasses import dataclass, field

from wealth_race.params import (
    Asset,
    AssetClass,
    asset_class,
    is_tradable,
)
from wealth_race.prices import Instrument, create_market

# Residue below this is treated as a full withdrawal / full sale
EPSILON = 1e-9


class InvalidCommand(ValueError):
    """A player command was rejected; no state was changed."""


class InvalidAmount(InvalidCommand):
    pass


class InsufficientCash(InvalidCommand):
    pass


class InsufficientHoldings(InvalidCommand):
    pass


class UnknownAsset(InvalidCommand):
    pass


class WrongAssetClass(InvalidCommand):
    pass


@dataclass
class Holding:
    principal: float = 0.0
    profit: float = 0.0
    quantity: float = 0.0  # tradables only

    @property
    def total(self) -> float:
        return self.principal + self.profit


def resolve_asset(key: "Asset | str") -> Asset:
    """Coerce a holding key to the Asset catalog. Raises UnknownAsset."""
    if isinstance(key, Asset):
        return key
    try:
        return Asset(key)
    except ValueError:
        raise UnknownAsset(f"Unknown asset '{key}'") from None


def _check_amount(amount: float, what: str = "Amount") -> None:
    if not isinstance(amount, (int, float)) or isinstance(amount, bool):
        raise InvalidAmount(f"{what} must be a number, got {amount!r}")
    if math.isnan(amount) or math.isinf(amount) or amount <= 0:
        raise InvalidAmount(f"{what} must be positive, got {amount}")


@dataclass
class Ledger:
    cash: float = 0.0
    net_worth: float = 0.0
    holdings: dict[Asset, Holding] = field(
        default_factory=lambda: {asset: Holding() for asset in Asset}
    )
    instruments: dict[Asset, Instrument] = field(default_factory=create_market)

    @classmethod
    def opening(cls, cash: float) -> "Ledger":
        """Fresh ledger: all cash, zero holdings, base prices."""
        ledger = cls(cash=cash)
        ledger.update_net_worth()
        return ledger

    # -- queries ---------------------------------------------------------

    def holdings_value(self) -> float:
        return sum(h.total for h in self.holdings.values())

    def market_value(self, asset: "Asset | str") -> float:
        """Owned units at current price (display / sale checks only)."""
        asset = resolve_asset(asset)
        if not is_tradable(asset):
            return self.holdings[asset].total
        return self.holdings[asset].quantity * self.instruments[asset].current_price

    def price(self, asset: "Asset | str") -> float:
        asset = resolve_asset(asset)
        if not is_tradable(asset):
            raise WrongAssetClass(f"{asset.value} has no unit price")
        return self.instruments[asset].current_price

    def update_net_worth(self) -> float:
        """Recompute net worth = cash + Σ(principal + profit)."""
        self.net_worth = self.cash + self.holdings_value()
        return self.net_worth

    # -- pooled instruments ----------------------------------------------

    def invest(self, asset: "Asset | str", amount: float) -> None:
        """Move cash into a traditional holding's principal."""
        asset = resolve_asset(asset)
        if is_tradable(asset):
            raise WrongAssetClass(f"{asset.value} is traded by quantity; use buy")
        _check_amount(amount)
        if amount > self.cash:
            raise InsufficientCash(
                f"Insufficient cash: need {amount:,.2f}, have {self.cash:,.2f}"
            )
        self.holdings[asset].principal += amount
        self.cash -= amount
        self.update_net_worth()

    def withdraw(self, asset: "Asset | str", amount: float) -> None:
        """Withdraw from a holding proportionally across principal and profit."""
        asset = resolve_asset(asset)
        if is_tradable(asset):
            raise WrongAssetClass(f"{asset.value} is traded by quantity; use sell")
        _check_amount(amount)
        holding = self.holdings[asset]
        if amount > holding.total + EPSILON:
            raise InsufficientHoldings(
                f"Insufficient {asset.value}: requested {amount:,.2f}, "
                f"holding {holding.total:,.2f}"
            )
        self._take(holding, amount)
        self.cash += amount
        self.update_net_worth()

    def liquidate(self, asset: Asset, amount: float) -> float:
        """Withdraw up to `amount` from any holding. Returns the amount taken.

        For tradables the same fraction of owned units is released, which
        keeps the average cost per unit unchanged.
        """
        holding = self.holdings[asset]
        taken = min(amount, holding.total)
        if taken <= 0:
            return 0.0
        if is_tradable(asset):
            remaining = 1 - taken / holding.total
            holding.quantity = 0.0 if remaining < EPSILON else holding.quantity * remaining
        self._take(holding, taken)
        self.cash += taken
        self.update_net_worth()
        return taken

    @staticmethod
    def _take(holding: Holding, amount: float) -> None:
        total = holding.total
        if amount >= total - EPSILON:
            holding.principal = 0.0
            holding.profit = 0.0
            return
        principal_ratio = holding.principal / total
        from_principal = amount * principal_ratio
        holding.principal = max(0.0, holding.principal - from_principal)
        holding.profit = max(0.0, holding.profit - (amount - from_principal))

    # -- tradables -------------------------------------------------------

    def _tradable(self, asset: "Asset | str", expected: AssetClass | None) -> Asset:
        asset = resolve_asset(asset)
        if not is_tradable(asset):
            raise WrongAssetClass(f"{asset.value} is not tradable; use invest/withdraw")
        if expected is not None and asset_class(asset) != expected:
            raise WrongAssetClass(
                f"{asset.value} is {asset_class(asset).value}, not {expected.value}"
            )
        return asset

    def buy(self, asset: "Asset | str", quantity: float, expected: AssetClass | None = None) -> float:
        """Buy units at current price. Returns the cost."""
        asset = self._tradable(asset, expected)
        _check_amount(quantity, "Quantity")
        cost = self.instruments[asset].current_price * quantity
        if cost > self.cash:
            raise InsufficientCash(
                f"Insufficient cash: {quantity:g} x {asset.value} costs {cost:,.2f}, "
                f"have {self.cash:,.2f}"
            )
        holding = self.holdings[asset]
        holding.principal += cost
        holding.quantity += quantity
        self.cash -= cost
        self.update_net_worth()
        return cost

    def sell(self, asset: "Asset | str", quantity: float, expected: AssetClass | None = None) -> float:
        """Sell units at current price. Returns the sale value.

        Gain or loss versus average cost is booked into profit. A loss larger
        than the booked profit is absorbed against principal; both stay >= 0.
        Closing the position clears both, since the proceeds are all in cash.
        """
        asset = self._tradable(asset, expected)
        _check_amount(quantity, "Quantity")
        holding = self.holdings[asset]
        if quantity > holding.quantity + EPSILON:
            raise InsufficientHoldings(
                f"Insufficient {asset.value}: selling {quantity:g}, own {holding.quantity:g}"
            )
        quantity = min(quantity, holding.quantity)
        avg_cost = holding.principal / holding.quantity if holding.quantity > 0 else 0.0
        principal_reduction = avg_cost * quantity
        sale_value = self.instruments[asset].current_price * quantity
        profit_delta = sale_value - principal_reduction

        principal = holding.principal - principal_reduction
        profit = holding.profit + profit_delta
        if profit < 0:
            principal += profit
            profit = 0.0
        remaining = holding.quantity - quantity
        if remaining < EPSILON:
            holding.principal = holding.profit = holding.quantity = 0.0
        else:
            holding.principal = max(0.0, principal)
            holding.profit = profit
            holding.quantity = remaining
        self.cash += sale_value
        self.update_net_worth()
        return sale_value

    # -- forced payments -------------------------------------------------

    def debit(self, amount: float) -> None:
        """Take cash for an expense. May drive cash negative (debt)."""
        self.cash -= amount
        self.update_net_worth()

    def credit(self, amount: float) -> None:
        self.cash += amount
        self.update_net_worth()

    def pay_from_holdings(self, amount: float) -> float:
        """Cover `amount` by liquidating holdings in catalog order, rest from cash.

        Returns the amount that came out of holdings.
        """
        remaining = amount
        for asset in Asset:
            if remaining <= EPSILON:
                break
            remaining -= self.liquidate(asset, remaining)
        from_holdings = amount - max(0.0, remaining)
        # Liquidation proceeds landed in cash; pay the whole bill from there
        self.debit(amount)
        return from_holdings
