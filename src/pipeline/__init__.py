"""Stage graph and orchestration for the food pairing pipeline."""

from src.pipeline.graph import TERMINAL, StageGraph
from src.pipeline.orchestrator import FoodPairingPipeline, build_pairing_graph
from src.pipeline.stages import BeveragePairingStage, DishRecommenderStage

__all__ = [
    "BeveragePairingStage",
    "DishRecommenderStage",
    "FoodPairingPipeline",
    "StageGraph",
    "TERMINAL",
    "build_pairing_graph",
]
