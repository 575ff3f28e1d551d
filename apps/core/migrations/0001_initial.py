from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='SiteConfig',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('site_name', models.CharField(default='Movemate LogisticExpress', max_length=255)),
                ('tracking_base_url', models.URLField(blank=True, help_text='Front-end origin used in receipts and QR codes. Falls back to FRONTEND_URL.')),
                ('support_email', models.EmailField(default='support@movemate.com', max_length=254)),
                ('phone_number', models.CharField(blank=True, max_length=50)),
                ('address', models.TextField(blank=True)),
                ('chat_greeting', models.TextField(default="Hello! I'm your Movemate support assistant. How can I help you today?")),
                ('chat_auto_reply', models.TextField(default='Thank you for your message. Our support team will respond shortly. In the meantime, you might find answers in our FAQ section.')),
            ],
            options={
                'verbose_name': 'Site Configuration',
            },
        ),
    ]
