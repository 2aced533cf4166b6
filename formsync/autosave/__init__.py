"""Debounced autosave."""

from .scheduler import AutosaveScheduler, AutosaveState, SaveOutcome, DEBOUNCE_MS

__all__ = ['AutosaveScheduler', 'AutosaveState', 'SaveOutcome', 'DEBOUNCE_MS']
