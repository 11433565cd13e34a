"""
FlashArb-Pair exception hierarchy

Every failure of an arbitrage attempt is one of these. The host environment
(`flasharb.chain.Chain`) rolls back all state of a failed unit and re-raises,
so callers see the original exception.
"""


class FlashArbError(Exception):
    """Base class for all arbitrage errors"""
    pass


class ConfigValidationError(FlashArbError):
    """Raised when the configuration file or environment is invalid"""
    pass


# ============================================
# Configuration errors (before any funds move)
# ============================================

class ConfigurationError(FlashArbError):
    """The supplied pools cannot form an arbitrage pair"""
    pass


class InvalidPairConfiguration(ConfigurationError):
    """Pools do not share a base-asset pair"""
    pass


class SamePairAddress(InvalidPairConfiguration):
    """Both pool handles point at the same pool"""
    pass


class NonStandardOrdering(InvalidPairConfiguration):
    """Pool tokens are not sorted (token0 < token1)"""
    pass


# ============================================
# Economic errors (during sizing, zero side effects)
# ============================================

class EconomicError(FlashArbError):
    """No exploitable price difference"""
    pass


class NotProfitable(EconomicError):
    pass


class NoRealSolution(EconomicError):
    """Quadratic discriminant is not strictly positive"""
    pass


class NoPositiveSolution(EconomicError):
    """No root of the quadratic lies inside the pools' quote reserves"""
    pass


# ============================================
# Arithmetic errors
# ============================================

class ArithmeticFailure(FlashArbError):
    """Computation cannot proceed safely"""
    pass


class ArithmeticOverflow(ArithmeticFailure):
    """An intermediate value left the 256-bit word range"""
    pass


class DomainError(ArithmeticFailure):
    pass


class InsufficientLiquidity(ArithmeticFailure):
    pass


class InsufficientInput(ArithmeticFailure):
    pass


class InsufficientOutput(ArithmeticFailure):
    pass


class InvalidReserves(ArithmeticFailure):
    """Zero reserve in a price ratio"""
    pass


# ============================================
# Authorization errors
# ============================================

class AuthorizationError(FlashArbError):
    """Settlement callback rejected"""
    pass


class UnauthorizedCallback(AuthorizationError):
    """Caller is not the pool the guard was armed for"""
    pass


class ForeignOrigin(AuthorizationError):
    """Flash swap was not initiated by this arbitrageur"""
    pass


class ReentrantAttempt(AuthorizationError):
    """A second attempt tried to start while one is in flight"""
    pass


class InvalidCallbackPayload(AuthorizationError):
    pass


# ============================================
# Settlement errors (after funds moved, force rollback)
# ============================================

class SettlementError(FlashArbError):
    pass


class LosingMoney(SettlementError):
    """Base-token balance did not grow over the attempt"""
    pass


class TransferFailed(SettlementError):
    pass
