# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Container acceptance harness for a built rattomail .deb.

Builds the test image, starts one throwaway container, installs the package,
sends a message through the sendmail shim, copies the Maildir back out and
checks the delivered message. The container is stopped on every exit path
once it has been started.
"""
