from recruitcord.recruitment.pipeline import RecruitPipeline
from recruitcord.recruitment.ranking import RankingAggregator

__all__ = ["RecruitPipeline", "RankingAggregator"]
