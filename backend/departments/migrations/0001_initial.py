from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Department',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, verbose_name='Created At')),
                ('updated_at', models.DateTimeField(auto_now=True, verbose_name='Updated At')),
                ('name', models.CharField(max_length=150, unique=True, verbose_name='Name')),
                ('code', models.CharField(help_text='Short unique code, stored upper-case (e.g. WATER).', max_length=20, unique=True, verbose_name='Code')),
                ('description', models.TextField(blank=True, default='', verbose_name='Description')),
                ('contact_email', models.EmailField(blank=True, default='', max_length=254, verbose_name='Contact Email')),
                ('contact_phone', models.CharField(blank=True, default='', max_length=20, verbose_name='Contact Phone')),
                ('status', models.CharField(choices=[('active', 'Active'), ('inactive', 'Inactive')], db_index=True, default='active', max_length=10, verbose_name='Status')),
                ('categories', models.JSONField(blank=True, default=list, verbose_name='Serviced Categories')),
            ],
            options={
                'verbose_name': 'Department',
                'verbose_name_plural': 'Departments',
                'ordering': ['name'],
            },
        ),
    ]
