from fsrs_core.defaults import DEFAULT_PARAMETERS, MODEL_VERSION
from fsrs_core.errors import (
    EmptyHistory,
    FSRSError,
    InvalidParameterVector,
    InvalidRetention,
    NoTrainableData,
    NumericalDivergence,
)
from fsrs_core.evaluate import Evaluation, evaluate
from fsrs_core.history import memory_state, split_cards, training_items
from fsrs_core.math.fsrs import retrievability
from fsrs_core.model import FSRS
from fsrs_core.optimizer import (
    OptimizationResult,
    Optimizer,
    OptimizerConfig,
    OptimizerStatus,
    optimize,
)
from fsrs_core.scheduler import next_interval
from fsrs_core.sm2 import from_sm2
from fsrs_core.types import (
    MemoryState,
    Outcome,
    OutcomeSet,
    Rating,
    Review,
    TracedReview,
    TrainingItem,
)

__all__ = [
    "DEFAULT_PARAMETERS",
    "MODEL_VERSION",
    "EmptyHistory",
    "Evaluation",
    "FSRS",
    "FSRSError",
    "InvalidParameterVector",
    "InvalidRetention",
    "MemoryState",
    "NoTrainableData",
    "NumericalDivergence",
    "OptimizationResult",
    "Optimizer",
    "OptimizerConfig",
    "OptimizerStatus",
    "Outcome",
    "OutcomeSet",
    "Rating",
    "Review",
    "TracedReview",
    "TrainingItem",
    "evaluate",
    "from_sm2",
    "memory_state",
    "next_interval",
    "optimize",
    "retrievability",
    "split_cards",
    "training_items",
]
