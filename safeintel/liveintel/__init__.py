"""
Live security intelligence: headlines in, zoned incidents, risk score,
dynamic adjustment and briefing out, served from a SQLite cache.

Import the blueprint from safeintel.liveintel.routes and the service
from safeintel.liveintel.pipeline.
"""

from .errors import BriefingError, ClassifierError, IntelError, PipelineTimeout, ReportSourceError

__all__ = ['IntelError', 'ReportSourceError', 'ClassifierError', 'BriefingError', 'PipelineTimeout']
