"""
Arise Test Suite
================

Test Organization
-----------------
- tests/unit/core/     : Content registry, configuration, invariants, logging
- tests/unit/domain/   : Character state value objects and serialization
- tests/unit/modules/  : One module per engine service
- tests/unit/test_engine.py : The facade, end to end

Every test is a unit test: the engine does no I/O, and randomness is a
seeded `random.Random` or a patched sampler.
"""
