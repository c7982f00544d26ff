# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""skilldex - skill discovery, validation and matching engine."""

__version__ = "0.1.0"
