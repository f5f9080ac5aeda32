"""
Load risk themes, categories or the control library from a CSV file.
"""

from django.core.management.base import BaseCommand, CommandError

from risks.services.csv_service import CSVService


class Command(BaseCommand):
    help = 'Load risk themes, categories or library controls from CSV, upserting by code'

    def add_arguments(self, parser):
        parser.add_argument('csv_path', nargs='?', default=None, help='Path to the CSV file')
        parser.add_argument(
            '--kind',
            choices=CSVService.KINDS,
            required=True,
            help='Kind of reference data in the file',
        )

    def handle(self, *args, **options):
        service = CSVService(options['kind'], file_path=options['csv_path'])
        result = service.load()

        if not result['success']:
            raise CommandError(result['message'])

        for error in result['errors'] or []:
            self.stderr.write(error)

        self.stdout.write(self.style.SUCCESS(
            f"{result['message']} Created {result['created']}, updated {result['updated']}."
        ))
