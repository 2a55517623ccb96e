"""cloudsweep - policy-filtered, rate-limited cloud resource deletion."""

__version__ = "0.1.0"
