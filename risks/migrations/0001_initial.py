import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


RAG_CHOICES = [
    ('Blue', 'Blue (Closed)'),
    ('Green', 'Green (OK)'),
    ('Amber', 'Amber (Attention)'),
    ('Red', 'Red (Critical)'),
]

RATING_VALIDATORS = [
    django.core.validators.MinValueValidator(1),
    django.core.validators.MaxValueValidator(5),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='RiskTheme',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=20, unique=True)),
                ('name', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True, default='')),
                ('board_appetite', models.PositiveSmallIntegerField(
                    default=3,
                    help_text='Highest residual score the board tolerates for risks in this theme.',
                    validators=RATING_VALIDATORS,
                )),
                ('order', models.IntegerField(db_index=True, default=0)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Risk Theme',
                'verbose_name_plural': 'Risk Themes',
                'ordering': ['order', 'id'],
            },
        ),
        migrations.CreateModel(
            name='RiskCategory',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=20)),
                ('name', models.CharField(max_length=100)),
                ('description', models.TextField(blank=True, default='')),
                ('order', models.IntegerField(default=0)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('theme', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='categories',
                    to='risks.risktheme',
                )),
            ],
            options={
                'verbose_name': 'Risk Category',
                'verbose_name_plural': 'Risk Categories',
                'ordering': ['theme', 'order', 'id'],
                'indexes': [models.Index(fields=['theme', 'order'], name='risks_category_theme_order_idx')],
                'constraints': [
                    models.UniqueConstraint(fields=('theme', 'code'), name='uq_risk_category_theme_code'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ControlLibrary',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('code', models.CharField(max_length=50, unique=True)),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, default='')),
                ('control_type', models.CharField(blank=True, db_index=True, default='', max_length=50)),
                ('frequency', models.CharField(blank=True, default='', max_length=50)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Control',
                'verbose_name_plural': 'Control Library',
                'db_table': 'risks_control_library',
                'ordering': ['code'],
            },
        ),
        migrations.CreateModel(
            name='Risk',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('ref_no', models.CharField(db_index=True, max_length=50, unique=True)),
                ('name', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, default='')),
                ('tier', models.CharField(
                    blank=True,
                    choices=[('Tier A', 'Tier A - High'), ('Tier B', 'Tier B - Medium'), ('Tier C', 'Tier C - Low')],
                    db_index=True,
                    max_length=20,
                    null=True,
                )),
                ('owner_id', models.PositiveIntegerField(blank=True, db_index=True, null=True)),
                ('responsible_party_id', models.PositiveIntegerField(blank=True, null=True)),
                ('financial_impact', models.PositiveSmallIntegerField(blank=True, null=True, validators=RATING_VALIDATORS)),
                ('regulatory_impact', models.PositiveSmallIntegerField(blank=True, null=True, validators=RATING_VALIDATORS)),
                ('reputational_impact', models.PositiveSmallIntegerField(blank=True, null=True, validators=RATING_VALIDATORS)),
                ('inherent_probability', models.PositiveSmallIntegerField(blank=True, null=True, validators=RATING_VALIDATORS)),
                ('inherent_risk_score', models.DecimalField(decimal_places=2, default=0, editable=False, max_digits=5)),
                ('inherent_rag', models.CharField(
                    choices=RAG_CHOICES, db_index=True, default='Green', editable=False, max_length=10,
                )),
                ('residual_risk_score', models.DecimalField(decimal_places=2, default=0, editable=False, max_digits=5)),
                ('residual_rag', models.CharField(
                    choices=RAG_CHOICES, db_index=True, default='Green', editable=False, max_length=10,
                )),
                ('appetite_status', models.CharField(
                    choices=[('OK', 'Within appetite'), ('Outside', 'Outside appetite')],
                    default='OK',
                    editable=False,
                    max_length=10,
                )),
                ('monthly_update', models.TextField(blank=True, default='')),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('category', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='risks',
                    to='risks.riskcategory',
                )),
            ],
            options={
                'verbose_name': 'Risk',
                'verbose_name_plural': 'Risks',
                'ordering': ['-inherent_risk_score', 'ref_no'],
                'indexes': [
                    models.Index(fields=['financial_impact', 'inherent_probability'], name='risks_risk_impact_prob_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='RiskControl',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('implementation_status', models.CharField(
                    choices=[('Planned', 'Planned'), ('In Progress', 'In Progress'), ('Implemented', 'Implemented')],
                    db_index=True,
                    default='Planned',
                    max_length=20,
                )),
                ('effectiveness_score', models.PositiveSmallIntegerField(
                    blank=True,
                    null=True,
                    validators=[
                        django.core.validators.MinValueValidator(0),
                        django.core.validators.MaxValueValidator(100),
                    ],
                )),
                ('notes', models.TextField(blank=True, default='')),
                ('last_tested_date', models.DateField(blank=True, null=True)),
                ('next_test_date', models.DateField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('control', models.ForeignKey(
                    on_delete=django.db.models.deletion.PROTECT,
                    related_name='risk_controls',
                    to='risks.controllibrary',
                )),
                ('risk', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='risk_controls',
                    to='risks.risk',
                )),
            ],
            options={
                'verbose_name': 'Risk Control',
                'verbose_name_plural': 'Risk Controls',
                'ordering': ['id'],
                'constraints': [
                    models.UniqueConstraint(fields=('risk', 'control'), name='uq_risk_control'),
                ],
            },
        ),
        migrations.CreateModel(
            name='RiskAction',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=200)),
                ('description', models.TextField(blank=True, default='')),
                ('owner_id', models.PositiveIntegerField(blank=True, null=True)),
                ('status', models.CharField(
                    choices=[
                        ('Open', 'Open'),
                        ('In Progress', 'In Progress'),
                        ('Completed', 'Completed'),
                        ('Overdue', 'Overdue'),
                    ],
                    db_index=True,
                    default='Open',
                    max_length=20,
                )),
                ('priority', models.CharField(
                    choices=[('High', 'High'), ('Medium', 'Medium'), ('Low', 'Low')],
                    db_index=True,
                    default='Medium',
                    max_length=10,
                )),
                ('due_date', models.DateField(blank=True, db_index=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('risk', models.ForeignKey(
                    on_delete=django.db.models.deletion.CASCADE,
                    related_name='actions',
                    to='risks.risk',
                )),
            ],
            options={
                'verbose_name': 'Risk Action',
                'verbose_name_plural': 'Risk Actions',
                'ordering': ['due_date', 'id'],
            },
        ),
    ]
