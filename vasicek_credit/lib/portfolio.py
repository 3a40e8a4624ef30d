"""Loan and portfolio data structures for credit risk modeling."""

import numbers
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional
import numpy as np
import pandas as pd

from .exceptions import InvalidInputError


def _is_count(value) -> bool:
    return (isinstance(value, numbers.Integral) and not isinstance(value, bool)
            and value >= 0)


@dataclass(frozen=True)
class Loan:
    """Represents a single loan in the portfolio.

    Attributes:
        id: Unique non-negative identifier, stable for the loan's lifetime
        ead: Exposure at default
        lgd: Loss given default (recovery = 1 - lgd)
        prior_late_payments: Count of prior late payments (model feature)
        pd: Base probability of default; 0.0 until the PD model is applied
        defaulted: Synthetic default label, used for training only
    """
    id: int
    ead: float
    lgd: float
    prior_late_payments: int
    pd: float = 0.0
    defaulted: bool = False

    def __post_init__(self):
        if not _is_count(self.id):
            raise InvalidInputError(f"Loan id must be a non-negative integer, got {self.id!r}")
        if not self.ead > 0:
            raise InvalidInputError(f"EAD must be positive, got {self.ead}")
        if not 0 < self.lgd <= 1:
            raise InvalidInputError(f"LGD must be in (0, 1], got {self.lgd}")
        if not _is_count(self.prior_late_payments):
            raise InvalidInputError(
                "prior_late_payments must be a non-negative integer, "
                f"got {self.prior_late_payments!r}"
            )
        if not 0 <= self.pd < 1:
            raise InvalidInputError(f"PD must be in [0, 1), got {self.pd}")

    @property
    def exposure(self) -> float:
        """Loss if this loan defaults: EAD x LGD."""
        return self.ead * self.lgd

    @property
    def expected_loss(self) -> float:
        """Calculate expected loss for this loan."""
        return self.pd * self.lgd * self.ead

    @property
    def is_trained(self) -> bool:
        """Whether a base PD has been assigned."""
        return self.pd > 0

    def with_pd(self, pd: float) -> "Loan":
        """Return a copy of this loan carrying the given base PD."""
        return replace(self, pd=pd)


class Portfolio:
    """Ordered collection of loans keyed by id.

    Insertion order is preserved and is the order used by training and
    simulation.
    """

    def __init__(self, loans: Optional[Iterable[Loan]] = None,
                 name: str = "Portfolio"):
        self.name = name
        self._loans: Dict[int, Loan] = {}
        for loan in loans or ():
            self.add_loan(loan)

    def add_loan(self, loan: Loan) -> None:
        """Add a loan to the portfolio."""
        if loan.id in self._loans:
            raise InvalidInputError(f"Loan {loan.id} already exists in portfolio")
        self._loans[loan.id] = loan

    def remove_loan(self, loan_id: int) -> Loan:
        """Remove and return a loan from the portfolio."""
        if loan_id not in self._loans:
            raise KeyError(f"Loan {loan_id} not found in portfolio")
        return self._loans.pop(loan_id)

    def get_loan(self, loan_id: int) -> Loan:
        """Get a loan by id."""
        if loan_id not in self._loans:
            raise KeyError(f"Loan {loan_id} not found in portfolio")
        return self._loans[loan_id]

    @property
    def loans(self) -> List[Loan]:
        """Return list of all loans."""
        return list(self._loans.values())

    @property
    def loan_ids(self) -> List[int]:
        """Return list of all loan ids."""
        return list(self._loans.keys())

    def __len__(self) -> int:
        return len(self._loans)

    def __iter__(self):
        return iter(self._loans.values())

    def __contains__(self, loan_id: int) -> bool:
        return loan_id in self._loans

    @property
    def total_ead(self) -> float:
        """Total exposure at default across all loans."""
        return sum(loan.ead for loan in self._loans.values())

    @property
    def total_exposure(self) -> float:
        """Total loss if every loan defaulted (sum of EAD x LGD)."""
        return float(np.sum(self.exposures()))

    @property
    def total_expected_loss(self) -> float:
        """Un-stressed expected loss, sum of EAD x LGD x PD."""
        return float(np.dot(self.exposures(), self.pds()))

    @property
    def is_trained(self) -> bool:
        """True when every loan carries a base PD."""
        return len(self._loans) > 0 and all(l.is_trained for l in self._loans.values())

    def exposures(self) -> np.ndarray:
        """EAD x LGD per loan, in portfolio order."""
        return np.array([l.ead * l.lgd for l in self._loans.values()], dtype=float)

    def pds(self) -> np.ndarray:
        """Base PD per loan, in portfolio order."""
        return np.array([l.pd for l in self._loans.values()], dtype=float)

    def late_payments(self) -> np.ndarray:
        """Prior late payment counts, in portfolio order."""
        return np.array([l.prior_late_payments for l in self._loans.values()], dtype=float)

    def default_labels(self) -> np.ndarray:
        """Synthetic default labels as 0/1 floats, in portfolio order."""
        return np.array([l.defaulted for l in self._loans.values()], dtype=float)

    def with_pds(self, pds: Iterable[float]) -> "Portfolio":
        """Return a new portfolio with base PDs assigned in portfolio order."""
        pds = list(pds)
        if len(pds) != len(self._loans):
            raise InvalidInputError(
                f"Expected {len(self._loans)} PDs, got {len(pds)}"
            )
        return Portfolio(
            (loan.with_pd(float(pd)) for loan, pd in zip(self._loans.values(), pds)),
            name=self.name
        )

    def copy(self) -> "Portfolio":
        """Create a copy of the portfolio (loans are immutable)."""
        return Portfolio(self._loans.values(), name=f"{self.name}_copy")

    def to_dataframe(self) -> pd.DataFrame:
        """One row per loan, indexed by loan id."""
        df = pd.DataFrame(
            [{
                'id': l.id,
                'EAD': l.ead,
                'LGD': l.lgd,
                'Prior_Late_Payments': l.prior_late_payments,
                'PD': l.pd,
                'Defaulted': l.defaulted,
                'Expected_Loss': l.expected_loss,
            } for l in self._loans.values()],
            columns=['id', 'EAD', 'LGD', 'Prior_Late_Payments', 'PD',
                     'Defaulted', 'Expected_Loss']
        )
        return df.set_index('id')
