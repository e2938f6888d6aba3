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

import logging
import threading
from contextlib import contextmanager

from mash_pics.validators.rules import Severity

logger = logging.getLogger(__name__)


class ReadWriteLock:
    """Many concurrent readers or one exclusive writer."""

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @contextmanager
    def read(self):
        with self._cond:
            while self._writer or self._waiting_writers:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @contextmanager
    def write(self):
        with self._cond:
            self._waiting_writers += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class RuleRegistry:
    """Registered rules with their enablement and severity overrides.

    Rules run in registration order. Re-registering an ID replaces the rule
    in place, enables it and drops its severity override. Rules are never
    removed.
    """

    def __init__(self):
        self._lock = ReadWriteLock()
        self._rules = {}
        self._enabled = {}
        self._severity = {}
        self._order = []

    def register(self, rule):
        with self._lock.write():
            if rule.id not in self._rules:
                self._order.append(rule.id)
            self._rules[rule.id] = rule
            self._enabled[rule.id] = True
            self._severity.pop(rule.id, None)
        logger.debug(f"Registered rule {rule.id} ({rule.category})")

    def enable(self, rule_id):
        with self._lock.write():
            if rule_id in self._rules:
                self._enabled[rule_id] = True

    def disable(self, rule_id):
        with self._lock.write():
            if rule_id in self._rules:
                self._enabled[rule_id] = False

    def set_severity(self, rule_id, severity):
        """Override the severity reported for a rule's violations."""
        with self._lock.write():
            if rule_id in self._rules:
                self._severity[rule_id] = Severity(severity)

    def enable_all(self):
        with self._lock.write():
            for rule_id in self._order:
                self._enabled[rule_id] = True

    def disable_all(self):
        with self._lock.write():
            for rule_id in self._order:
                self._enabled[rule_id] = False

    def enable_category(self, category):
        self._set_category(category, True)

    def disable_category(self, category):
        self._set_category(category, False)

    def _set_category(self, category, enabled):
        with self._lock.write():
            for rule_id in self._order:
                if self._rules[rule_id].category == category:
                    self._enabled[rule_id] = enabled

    def is_enabled(self, rule_id):
        with self._lock.read():
            return self._enabled.get(rule_id, False)

    def get_severity(self, rule_id):
        """Return the effective severity of a rule.

        The override wins over the rule's default. Unknown IDs report ERROR.
        """
        with self._lock.read():
            return self._effective_severity(rule_id)

    def _effective_severity(self, rule_id):
        if rule_id in self._severity:
            return self._severity[rule_id]
        rule = self._rules.get(rule_id)
        if rule is None:
            return Severity.ERROR
        return rule.default_severity

    def get_rule(self, rule_id):
        with self._lock.read():
            return self._rules.get(rule_id)

    def all_rules(self):
        with self._lock.read():
            return [self._rules[rule_id] for rule_id in self._order]

    def enabled_rules(self):
        with self._lock.read():
            return [
                self._rules[rule_id]
                for rule_id in self._order
                if self._enabled[rule_id]
            ]

    def rules_by_category(self, category):
        with self._lock.read():
            return [
                self._rules[rule_id]
                for rule_id in self._order
                if self._rules[rule_id].category == category
            ]

    def categories(self):
        with self._lock.read():
            return sorted({rule.category for rule in self._rules.values()})

    def count(self):
        with self._lock.read():
            return len(self._rules)

    def enabled_count(self):
        with self._lock.read():
            return sum(1 for enabled in self._enabled.values() if enabled)

    def __len__(self):
        return self.count()

    def run_rules(self, pics):
        """Run every enabled rule against a document.

        Each violation is stamped with the rule's effective severity.

        Args:
            pics: Parsed PICS document
        Returns:
            List of Violation, in registration order

        """
        violations = []
        with self._lock.read():
            rules = [
                (self._rules[rule_id], self._effective_severity(rule_id))
                for rule_id in self._order
                if self._enabled[rule_id]
            ]
            for rule, severity in rules:
                rule_violations = rule.check(pics)
                logger.debug(
                    f"Rule {rule.id}: {len(rule_violations)} violation(s)"
                )
                for violation in rule_violations:
                    violation.severity = severity
                    violations.append(violation)
        return violations
