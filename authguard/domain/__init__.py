"""Domain layer - rate limiting vocabulary.

Structure:
- enums/: Dimensions, rule modes, fail modes, outcomes
- value_objects/: Rules, policies, bucket state, context, decisions
- protocols/: Store, logger, key extractor and metrics ports
- errors/: Store exceptions

The domain layer has NO dependencies on frameworks or infrastructure.
"""
