"""SiteCheck: construction quality checklists verified per floor, unit and room."""

__version__ = "0.1.0"
