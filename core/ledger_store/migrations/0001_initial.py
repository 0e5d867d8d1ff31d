import uuid

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="LedgerEventRecord",
            fields=[
                (
                    "event_id",
                    models.UUIDField(
                        default=uuid.uuid4,
                        editable=False,
                        help_text="Unique event identifier. Enforces idempotency.",
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                ("ledger_id", models.UUIDField()),
                (
                    "sequence",
                    models.PositiveBigIntegerField(
                        help_text="Position in the ledger's event log, from 0.",
                    ),
                ),
                ("event_type", models.CharField(max_length=255)),
                ("event_version", models.PositiveSmallIntegerField(default=1)),
                ("source_engine", models.CharField(max_length=100)),
                ("actor_id", models.CharField(max_length=255)),
                ("correlation_id", models.UUIDField()),
                ("causation_id", models.UUIDField(blank=True, null=True)),
                ("payload", models.JSONField()),
                ("created_at", models.DateTimeField()),
                ("received_at", models.DateTimeField(auto_now_add=True)),
                ("previous_event_hash", models.CharField(max_length=64)),
                ("event_hash", models.CharField(max_length=64)),
            ],
            options={
                "db_table": "glc_ledger_events",
                "ordering": ["ledger_id", "sequence"],
                "indexes": [
                    models.Index(fields=["event_type"], name="idx_ledger_evt_type"),
                    models.Index(fields=["correlation_id"], name="idx_ledger_evt_corr"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("ledger_id", "sequence"),
                        name="uq_ledger_evt_sequence",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="AccountRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("ledger_id", models.UUIDField()),
                ("address", models.CharField(max_length=255)),
                ("balance", models.CharField(default="0", max_length=78)),
                ("blocked_balance", models.CharField(default="0", max_length=78)),
                ("blacklisted", models.BooleanField(default=False)),
                ("whitelist_enabled", models.BooleanField(default=False)),
            ],
            options={
                "db_table": "glc_ledger_accounts",
                "ordering": ["ledger_id", "address"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("ledger_id", "address"),
                        name="uq_ledger_account",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="WhitelistEntryRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("ledger_id", models.UUIDField()),
                ("account", models.CharField(max_length=255)),
                ("counterparty", models.CharField(max_length=255)),
                ("allowance", models.CharField(default="0", max_length=78)),
            ],
            options={
                "db_table": "glc_ledger_whitelist_entries",
                "ordering": ["ledger_id", "account", "counterparty"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("ledger_id", "account", "counterparty"),
                        name="uq_ledger_whitelist_entry",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SpendingAllowanceRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("ledger_id", models.UUIDField()),
                ("owner", models.CharField(max_length=255)),
                ("spender", models.CharField(max_length=255)),
                ("amount", models.CharField(default="0", max_length=78)),
            ],
            options={
                "db_table": "glc_ledger_spending_allowances",
                "ordering": ["ledger_id", "owner", "spender"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("ledger_id", "owner", "spender"),
                        name="uq_ledger_spending_allowance",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SupplyRecord",
            fields=[
                ("ledger_id", models.UUIDField(primary_key=True, serialize=False)),
                ("total_supply", models.CharField(default="0", max_length=78)),
            ],
            options={
                "db_table": "glc_ledger_supply",
            },
        ),
    ]
