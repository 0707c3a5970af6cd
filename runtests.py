#!/usr/bin/env python
import argparse
import os
import sys

import django
from django.conf import settings
from django.test.utils import get_runner


def main():
    parser = argparse.ArgumentParser(description='Run the django_dynamic_tables test suite.')
    parser.add_argument('labels', nargs='*', default=['django_dynamic_tables.tests'])
    parser.add_argument('--settings', default='django_dynamic_tables.tests.test_sqlite_settings')
    parser.add_argument('-v', '--verbosity', type=int, default=1)
    args = parser.parse_args()

    os.environ['DJANGO_SETTINGS_MODULE'] = args.settings
    django.setup()
    TestRunner = get_runner(settings)
    failures = TestRunner(verbosity=args.verbosity).run_tests(args.labels)
    sys.exit(bool(failures))


if __name__ == '__main__':
    main()
