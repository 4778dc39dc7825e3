# piece_trades/containers.py
"""
Defines the Dependency Injection (DI) container for the annotator.

This module uses the `punq` library to wire the rules engine, the feature
scorer and the annotation driver from one `AnnotationSettings` object, so an
embedding application (or a test) can swap any collaborator in one place.
"""

from typing import Optional

import punq

from piece_trades.config.settings import AnnotationSettings, settings
from piece_trades.core.feature_scorer import FeatureScorer
from piece_trades.orchestration.annotation_driver import AnnotationDriver
from piece_trades.services.rules_engine import PythonChessRulesEngine
from piece_trades.types import RulesEngine


def get_container(annotation_settings: Optional[AnnotationSettings] = None) -> punq.Container:
    """
    Initializes and returns a DI container configured for annotation runs.
    """
    annotation_settings = annotation_settings or settings.annotation
    container = punq.Container()

    container.register(AnnotationSettings, instance=annotation_settings)
    # The rules engine and scorer are stateless; one instance serves every run.
    container.register(RulesEngine, PythonChessRulesEngine, scope=punq.Scope.singleton)
    container.register(
        FeatureScorer, factory=lambda: FeatureScorer(annotation_settings.scoring), scope=punq.Scope.singleton
    )
    container.register(
        AnnotationDriver,
        factory=lambda: AnnotationDriver(
            rules_engine=container.resolve(RulesEngine),
            scorer=container.resolve(FeatureScorer),
            settings=container.resolve(AnnotationSettings),
        ),
    )
    return container
