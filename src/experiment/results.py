"""Per-trial result rows and reconciliation into the results table."""

from collections import OrderedDict
from typing import Any, Dict, Iterable, Iterator, List, Sequence, TYPE_CHECKING

from data.data_table import DataTable, format_value
from errors import SchemaViolationError

if TYPE_CHECKING:
    from experiment.trial import Trial


class ResultsDictionary:
    """Ordered column -> value mapping for one trial.

    Pre-seeded with empty strings for every declared header. In strict mode
    (ad_hoc=False) assigning an undeclared column raises immediately; in
    ad-hoc mode new columns are appended in first-assignment order.
    """

    def __init__(self, headers: Sequence[str], ad_hoc: bool = False) -> None:
        self.ad_hoc = ad_hoc
        self._values: "OrderedDict[str, Any]" = OrderedDict((h, "") for h in headers)

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if key not in self._values and not self.ad_hoc:
            raise SchemaViolationError(
                f"{key!r} is not a declared results column. Add it to the session's "
                "custom_headers, or enable ad_hoc_header_add."
            )
        self._values[key] = value

    def add_column(self, key: str, value: Any = "") -> None:
        """Declare a column (if new) and set its value, regardless of mode."""
        self._values[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def keys(self) -> List[str]:
        return list(self._values.keys())

    def items(self):
        return self._values.items()

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    def __repr__(self) -> str:
        return f"ResultsDictionary({dict(self._values)!r}, ad_hoc={self.ad_hoc})"


def collect_headers(results: Iterable[ResultsDictionary]) -> List[str]:
    """Union of all result columns, in order of first appearance."""
    headers: Dict[str, None] = {}
    for result in results:
        for key in result.keys():
            headers.setdefault(key, None)
    return list(headers)


def build_results_table(trials: Iterable["Trial"]) -> DataTable:
    """Reconcile the results of many trials into one rectangular table.

    Two passes are needed because ad-hoc columns are only known once every
    trial has run: first the union of columns is collected, then each trial
    with a result contributes one row. Missing values become empty fields;
    trials that never began contribute no row.

    Args:
        trials: Trials in session order

    Returns:
        DataTable with one row per trial that has a result
    """
    results = [t.result for t in trials if t.result is not None]

    table = DataTable(collect_headers(results))
    for result in results:
        row = [
            format_value(result[h]) if h in result else ""
            for h in table.headers
        ]
        table.add_row_values(row)
    return table
