# tests/test_containers.py
from piece_trades.config.settings import AnnotationSettings
from piece_trades.containers import get_container
from piece_trades.core.feature_scorer import FeatureScorer
from piece_trades.orchestration.annotation_driver import AnnotationDriver
from piece_trades.services.rules_engine import PythonChessRulesEngine
from piece_trades.types import RulesEngine


def test_container_wires_driver_from_settings():
    container = get_container(AnnotationSettings(start_ply=1))

    driver = container.resolve(AnnotationDriver)
    result = driver.annotate("1. e4 e5 *")

    assert isinstance(driver, AnnotationDriver)
    assert sorted(result.injections) == [1, 2]

def test_stateless_collaborators_are_singletons():
    container = get_container(AnnotationSettings())

    engine = container.resolve(RulesEngine)

    assert isinstance(engine, PythonChessRulesEngine)
    assert container.resolve(RulesEngine) is engine
    assert container.resolve(FeatureScorer) is container.resolve(FeatureScorer)

def test_scorer_uses_configured_weights():
    settings = AnnotationSettings()
    settings.scoring.loose_penalty = 9
    container = get_container(settings)
    assert container.resolve(FeatureScorer).settings.loose_penalty == 9

def test_drivers_are_fresh_per_resolve():
    container = get_container(AnnotationSettings())
    assert container.resolve(AnnotationDriver) is not container.resolve(AnnotationDriver)
