"""appforge -- scaffold TanStack Router applications from composable templates."""

__version__ = "0.1.0"
