from assertive.testing.unit import TestUnit, UnitResult, UnitStatus, on_exit

__all__ = [
    "TestUnit",
    "UnitResult",
    "UnitStatus",
    "on_exit",
]
