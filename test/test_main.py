"""
Demo entry point tests (the sample tree shipped in main.py).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import threading
import unittest
from unittest import TestCase

import main
from argtree import Context, faults, invoke


def quietly(prompt, **options):
    with faults.console.capture():
        return invoke(main.root, prompt, **options)


class TestDemoTree(TestCase):

    def testShowRecord(self):
        self.assertEqual(quietly([
            "registry", "records", "show",
            "-id", "63a36905-a4ea-42f4-8133-91951057c10d",
            "-source", "https://records.example/63a36905",
        ]), 0)
        self.assertEqual(str(main.root.children[0].children[0].record.get()), "63a36905-a4ea-42f4-8133-91951057c10d")

    def testMirrorNeedsDestinations(self):
        self.assertEqual(quietly(["registry", "records", "mirror", "-ids", "63a36905-a4ea-42f4-8133-91951057c10d"]), 1)

    def testMirrorRejectsNegativeDelay(self):
        self.assertEqual(quietly([
            "registry", "records", "mirror", "-to", "http://a.example/", "-delay", "-1",
        ]), 1)

    def testMirrorToSeveralDestinations(self):
        self.assertEqual(quietly([
            "registry", "records", "mirror",
            "-ids", "63a36905-a4ea-42f4-8133-91951057c10d,bc938938-be7e-4ecc-acb5-b111ef6275f7",
            "-to", "http://a.example/;http://b.example/",
            "-tags", "nightly,eu",
        ]), 0)
        mirror = main.root.children[0].children[1]
        self.assertEqual([str(target) for target in mirror.targets.get()], ["http://a.example/", "http://b.example/"])
        self.assertEqual(mirror.tags.get(), ["nightly", "eu"])

    def testSleepStopsOnCancellation(self):
        parent = Context()
        timer = threading.Timer(0.05, parent.cancel)
        timer.start()
        try:
            self.assertEqual(quietly(["registry", "sleep"], context=parent), 130)
        finally:
            timer.join()

    def testUnknownRoute(self):
        self.assertEqual(quietly(["registry", "recrods"]), 1)


if __name__ == "__main__":
    unittest.main()
