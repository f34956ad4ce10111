"""Domain-level validation rules for training configuration."""

from __future__ import annotations

from dataclasses import dataclass

from table_recommender.utils.config import Settings


@dataclass(frozen=True)
class TrainingConfig:
    test_fraction: float
    cross_validation_folds: int
    split_random_state: int
    model_random_state: int
    num_leaves: int
    min_leaf_examples: int
    learning_rate: float
    num_trees: int

    @classmethod
    def from_settings(cls, settings: Settings) -> "TrainingConfig":
        return cls(
            test_fraction=settings.test_fraction,
            cross_validation_folds=settings.cross_validation_folds,
            split_random_state=settings.split_random_state,
            model_random_state=settings.model_random_state,
            num_leaves=settings.gbt_num_leaves,
            min_leaf_examples=settings.gbt_min_leaf_examples,
            learning_rate=settings.gbt_learning_rate,
            num_trees=settings.gbt_num_trees,
        )


def validate_training_config(config: TrainingConfig) -> None:
    if not 0.0 < config.test_fraction < 1.0:
        raise ValueError("test_fraction must be in (0, 1)")
    if config.cross_validation_folds < 2:
        raise ValueError("cross_validation_folds must be >= 2")
    if config.num_leaves < 2:
        raise ValueError("num_leaves must be >= 2")
    if config.min_leaf_examples <= 0:
        raise ValueError("min_leaf_examples must be > 0")
    if not 0.0 < config.learning_rate <= 1.0:
        raise ValueError("learning_rate must be in (0, 1]")
    if config.num_trees <= 0:
        raise ValueError("num_trees must be > 0")
