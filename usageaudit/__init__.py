"""usageaudit — estimate how much each installed plugin is actually used."""

__version__ = "1.1.0"
