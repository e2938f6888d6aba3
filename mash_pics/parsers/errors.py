# Copyright 2025 Espressif Systems (Shanghai) PTE LTD
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


class PICSParseError(ValueError):
    """Raised when a PICS document cannot be parsed.

    Args:
        message: Description of the failure
        line_number: 1-based source line, or None when unknown
    """

    def __init__(self, message, line_number=None):
        self.message = message
        self.line_number = line_number
        super().__init__(str(self))

    def __str__(self):
        if self.line_number:
            return f"line {self.line_number}: {self.message}"
        return self.message
