from .aggregate_state import AggregateState as AggregateState
from .change_aggregator import ChangeAggregator as ChangeAggregator
from .progress_reporter import ProgressReporter as ProgressReporter
from .step_update import StepUpdate as StepUpdate
