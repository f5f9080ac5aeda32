"""
Recalculate the stored scores of every risk in the register.
"""

from django.core.management.base import BaseCommand, CommandError

from risks.services.scoring_service import RiskScoringService


class Command(BaseCommand):
    help = 'Recalculate inherent/residual scores, RAG and appetite status for all risks'

    def add_arguments(self, parser):
        parser.add_argument(
            '--batch-size',
            type=int,
            default=None,
            help='Number of risks rescored per transaction',
        )

    def handle(self, *args, **options):
        batch_size = options['batch_size']
        if batch_size is not None and batch_size < 1:
            raise CommandError('--batch-size must be a positive integer')

        self.stdout.write('Updating risk scores...')
        result = RiskScoringService(batch_size=batch_size).recalculate_all()
        self.stdout.write(self.style.SUCCESS(f"Updated {result['count']} risks."))
