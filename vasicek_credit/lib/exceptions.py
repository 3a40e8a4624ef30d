"""Typed exceptions for the credit loss engine.

All errors derive from CreditRiskError and from ValueError, so callers can
catch either the specific type or a plain ValueError.

    CreditRiskError
    +-- InvalidInputError      bad portfolio or loan data
    +-- InvalidParameterError  bad model / simulation parameter
    +-- NumericDomainError     statistics primitive called outside its domain
"""


class CreditRiskError(Exception):
    """Base class for all credit risk engine errors."""

    code: str = "CREDIT_RISK_ERROR"


class InvalidInputError(CreditRiskError, ValueError):
    """Raised for an empty portfolio, a bad loan count or malformed loan data."""

    code: str = "INVALID_INPUT"


class InvalidParameterError(CreditRiskError, ValueError):
    """Raised for rho outside [0, 1), non-positive iterations or an unusable PD."""

    code: str = "INVALID_PARAMETER"


class NumericDomainError(CreditRiskError, ValueError):
    """Raised when norm_cdf / norm_inv receive a value outside their domain."""

    code: str = "NUMERIC_DOMAIN"

    def __init__(self, function: str, value):
        self.function = function
        self.value = value
        super().__init__(f"{function} is undefined for {value!r}")
