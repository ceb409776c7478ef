from eventvote.voting.tally import TallyResult, tally
from eventvote.voting.throttle import RevoteThrottle, ThrottleDecision
from eventvote.voting.validator import validate_answers

__all__ = ["TallyResult", "tally", "RevoteThrottle", "ThrottleDecision", "validate_answers"]
