from secorules.components._base import CandidateSelector
from secorules.instances import Instances
from secorules.rules import SingleHeadRule


class SelectAllCandidatesSelector(CandidateSelector):
    """Refines every live candidate in each round."""

    def select_candidates(
        self, rules: list[SingleHeadRule], examples: Instances
    ) -> list[SingleHeadRule]:
        return list(rules)
