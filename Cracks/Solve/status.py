# Copyright 2025 CEA
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Solve Status
============

Outcome of a staggered sweep, exchanged between ranks as data so that every
rank takes the same retry decision.
"""


class Converged:
    """
    Every field converged.

    Attributes
    ----------
    residual_reduction : float Combined residual reduction of the sweep
    """
    diverged = False

    def __init__(self, residual_reduction):
        self.residual_reduction = residual_reduction

    def __repr__(self):
        return f"Converged({self.residual_reduction!r})"


class Diverged:
    """
    At least one field did not converge on at least one rank.

    Attributes
    ----------
    reason : str Diagnostic of the failure
    field : str or None Name of the field whose solve failed
    """
    diverged = True
    residual_reduction = None

    def __init__(self, reason, field=None):
        self.reason = reason
        self.field = field

    def __repr__(self):
        return f"Diverged({self.reason!r}, field={self.field!r})"
