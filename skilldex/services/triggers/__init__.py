# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Filesystem triggers for registry reloads."""

from .file_watcher import SkillTreeWatcher, TreeChangeHandler

__all__ = [
    "SkillTreeWatcher",
    "TreeChangeHandler",
]
