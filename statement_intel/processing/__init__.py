from .exceptions import ProcessingCancelled, SessionAlreadyProcessing
from .processor import STAGES, StatementProcessor, compute_statistics, process_statement
from .scheduler import ProcessingScheduler, RunState

__all__ = [
    'ProcessingCancelled',
    'SessionAlreadyProcessing',
    'STAGES',
    'StatementProcessor',
    'compute_statistics',
    'process_statement',
    'ProcessingScheduler',
    'RunState',
]
