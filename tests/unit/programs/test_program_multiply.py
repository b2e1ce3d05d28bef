"""Multiplication by repeated addition."""

from tests.unit.programs.conftest import execute_both

SOURCE = """\
align key performance indicators to r&d
align return on investment to sales
going forward, multiply
synergize assets and key performance indicators
optimize return on investment
pivot return on investment to report
revisit multiply
going forward, report
deliver assets
"""


class TestMultiply:
    def test_six_times_seven(self):
        assert execute_both(SOURCE) == "*"
