from tests.fakes.fake_clock import FakeClock
from tests.fakes.fake_filesystem import VAULT, FakeFileSystem

__all__ = ["VAULT", "FakeClock", "FakeFileSystem"]
