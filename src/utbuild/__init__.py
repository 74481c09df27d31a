"""utbuild - Unit test build system for embedded C.

Builds each unit test file together with the modules, mocks and library
groups it declares, runs it on the host or under a simulator, and collects
the results.
"""

__version__ = "0.1.0"
