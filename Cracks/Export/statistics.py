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
Statistics Table
================

Running table of (Step, Time) records of the accepted steps.
"""
from pandas import DataFrame


class StatisticsTable:
    """
    Step/time table, written as text by rank 0.

    Attributes
    ----------
    rows : list of dict One record per accepted step
    """
    COLUMNS = ["Step", "Time"]

    def __init__(self):
        self.rows = []

    def add_value(self, step, time):
        self.rows.append({"Step": int(step), "Time": float(time)})

    def __len__(self):
        return len(self.rows)

    def to_dataframe(self):
        return DataFrame(self.rows, columns=self.COLUMNS)

    def to_text(self):
        """Step as an integer, Time in scientific notation with 8 digits."""
        df = self.to_dataframe()
        if df.empty:
            return "  ".join(self.COLUMNS) + "\n"
        return df.to_string(index=False,
                            formatters={"Step": "{:d}".format,
                                        "Time": "{:.8e}".format}) + "\n"

    def write_text(self, file_name):
        with open(file_name, "w", encoding="utf-8") as f:
            f.write(self.to_text())
