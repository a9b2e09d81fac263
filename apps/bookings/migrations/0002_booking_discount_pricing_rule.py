from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("equipment", "0002_custodians_and_pricing_rules"),
        ("bookings", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="equipmentbooking",
            name="discount",
            field=models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12),
        ),
        migrations.AddField(
            model_name="equipmentbooking",
            name="pricing_rule",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="bookings",
                to="equipment.pricingrule",
            ),
        ),
    ]
