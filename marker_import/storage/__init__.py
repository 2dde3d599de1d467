"""Reference implementations of the pipeline's storage collaborators."""

from marker_import.storage.file_store import JsonFileMarkerStore
from marker_import.storage.plans import PLANS, Plan, StaticAccountDirectory, get_plan

__all__ = ["JsonFileMarkerStore", "PLANS", "Plan", "StaticAccountDirectory", "get_plan"]
