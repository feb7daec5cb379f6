# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Package assembly for rattomail.

Turns a validated, statically linked rattomail binary into a .deb:
version and architecture resolution, executable validation, a staging tree
mirroring the install target, a rendered control file, and the final
dpkg-deb run under fakeroot. Every run produces one complete package or
fails outright; there is no partial or incremental packaging.
"""
