"""AgriScan - photograph a crop, describe it, get a diagnosis and treatment plan."""

__version__ = "0.1.0"
