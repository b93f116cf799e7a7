"""Route-planning and trip-state client for the SafeRoutes personal-safety assistant."""

__version__ = "1.0.0"
