"""
Mocking infrastructure for pureami tests.

Socket doubles that stand in for a manager connection so the engine can be
exercised without a network.
"""
