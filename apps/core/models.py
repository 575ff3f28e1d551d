from django.conf import settings
from django.db import models
from django.core.cache import cache


class SingletonModel(models.Model):
    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        self.pk = 1
        super(SingletonModel, self).save(*args, **kwargs)
        self.set_cache()

    def delete(self, *args, **kwargs):
        pass

    @classmethod
    def load(cls):
        cached = cache.get(cls.__name__)
        if cached:
            return cached
        obj, created = cls.objects.get_or_create(pk=1)
        obj.set_cache()
        return obj

    def set_cache(self):
        cache.set(self.__class__.__name__, self)


DEFAULT_GREETING = "Hello! I'm your Movemate support assistant. How can I help you today?"
DEFAULT_AUTO_REPLY = (
    "Thank you for your message. Our support team will respond shortly. "
    "In the meantime, you might find answers in our FAQ section."
)


class SiteConfig(SingletonModel):
    # General
    site_name = models.CharField(max_length=255, default="Movemate LogisticExpress")
    tracking_base_url = models.URLField(
        blank=True,
        help_text="Front-end origin used in receipts and QR codes. Falls back to FRONTEND_URL."
    )

    # Contact
    support_email = models.EmailField(default="support@movemate.com")
    phone_number = models.CharField(max_length=50, blank=True)
    address = models.TextField(blank=True)

    # Chat
    chat_greeting = models.TextField(default=DEFAULT_GREETING)
    chat_auto_reply = models.TextField(default=DEFAULT_AUTO_REPLY)

    def __str__(self):
        return "Site Configuration"

    class Meta:
        verbose_name = "Site Configuration"

    def tracking_url(self, tracking_id: str) -> str:
        base = (self.tracking_base_url or settings.FRONTEND_URL).rstrip('/')
        return f"{base}/track?id={tracking_id}"
