# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
rattopkg: packaging and acceptance testing for the rattomail MDA.

Two stages live here:
  - release: turn a validated, statically linked rattomail binary into a .deb
  - harness: install that .deb in a throwaway container and check delivery

Everything that touches the outside world (strip, pandoc, dpkg-deb, docker)
goes through rattopkg.runtime.process so it can be faked in tests.
"""

__version__ = "0.1.0"
