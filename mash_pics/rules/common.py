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

from mash_pics.utils.helpers import format_endpoint_code


def endpoint_code(pics, endpoint, suffix):
    return format_endpoint_code(pics.side_code(), endpoint.id, suffix)


def endpoint_label(endpoint):
    """Render an endpoint for messages, e.g. "Endpoint 1 (EV_CHARGER)"."""
    if endpoint.type:
        return f"Endpoint {endpoint.id} ({endpoint.type})"
    return f"Endpoint {endpoint.id}"


def endpoint_declares(pics, endpoint, suffix):
    """True if ``<endpoint>.<suffix>`` is declared true on the endpoint."""
    return pics.endpoint_has(endpoint.id, endpoint_code(pics, endpoint, suffix))


def entry_lines(pics, *codes):
    """Source lines of the codes present in the document, in code order."""
    lines = []
    for code in codes:
        entry = pics.get(code)
        if entry is not None and entry.line_number:
            lines.append(entry.line_number)
    return lines
