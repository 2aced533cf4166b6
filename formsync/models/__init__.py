"""Data models for the form sync client."""

from .answers import Answer, QueuedAnswer, answers_from_mapping, to_wire_answers
from .queue_job import QueueJob, JobState
from .report import ReportHandle, GeneratedReport, FAILED_STATUSES

__all__ = [
    'Answer',
    'QueuedAnswer',
    'answers_from_mapping',
    'to_wire_answers',
    'QueueJob',
    'JobState',
    'ReportHandle',
    'GeneratedReport',
    'FAILED_STATUSES',
]
