# registry_core/patients/models.py
from django.conf import settings
from django.db import models

from registry_core.common.models import RegistryModel


class Gender(models.TextChoices):
    MALE = "male", "Male"
    FEMALE = "female", "Female"
    OTHER = "other", "Other"


class PatientStatus(models.TextChoices):
    ACTIVE = "active", "Active"
    INACTIVE = "inactive", "Inactive"
    DECEASED = "deceased", "Deceased"


class BloodType(models.TextChoices):
    A_POS = "A+", "A+"
    A_NEG = "A-", "A-"
    B_POS = "B+", "B+"
    B_NEG = "B-", "B-"
    AB_POS = "AB+", "AB+"
    AB_NEG = "AB-", "AB-"
    O_POS = "O+", "O+"
    O_NEG = "O-", "O-"


class Patient(RegistryModel):
    """
    Registry patient record.
    patient_number is generated on registration (PT-000001, PT-000002, ...).
    """
    patient_number = models.CharField(max_length=32, unique=True, db_index=True)

    # Identity
    first_name = models.CharField(max_length=128)
    last_name = models.CharField(max_length=128)
    date_of_birth = models.DateField()
    gender = models.CharField(max_length=16, choices=Gender.choices)
    national_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    inpatient_number = models.CharField(max_length=64, blank=True, default="")

    # Contact
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=32, blank=True, default="")
    address = models.TextField(blank=True, default="")
    city = models.CharField(max_length=128, blank=True, default="")
    county = models.CharField(max_length=128, blank=True, default="")
    sub_county = models.CharField(max_length=128, blank=True, default="")

    # Emergency contact / next of kin
    emergency_contact_name = models.CharField(max_length=255, blank=True, default="")
    emergency_contact_phone = models.CharField(max_length=32, blank=True, default="")
    emergency_contact_relationship = models.CharField(max_length=64, blank=True, default="")
    next_of_kin_name = models.CharField(max_length=255, blank=True, default="")
    next_of_kin_relationship = models.CharField(max_length=64, blank=True, default="")
    next_of_kin_phone = models.CharField(max_length=32, blank=True, default="")

    # Medical history
    blood_type = models.CharField(max_length=4, choices=BloodType.choices, blank=True, default="")
    allergies = models.JSONField(default=list, blank=True)
    chronic_conditions = models.JSONField(default=list, blank=True)
    cardiovascular_history = models.TextField(blank=True, default="")
    previous_surgeries = models.TextField(blank=True, default="")
    current_medications = models.TextField(blank=True, default="")
    hiv_status = models.CharField(max_length=32, blank=True, default="")

    # Clinical course
    diagnosis = models.TextField(blank=True, default="")
    treatment = models.TextField(blank=True, default="")
    nutritional_support = models.TextField(blank=True, default="")
    admission_date = models.DateField(null=True, blank=True)
    discharge_date = models.DateField(null=True, blank=True)
    outcome = models.CharField(max_length=64, blank=True, default="")
    cause_of_death = models.TextField(blank=True, default="")
    icu_referral = models.BooleanField(default=False)
    remarks = models.TextField(blank=True, default="")
    ward_number = models.CharField(max_length=32, blank=True, default="")
    procedure_performed = models.TextField(blank=True, default="")
    hgb = models.CharField(max_length=32, blank=True, default="")
    gxm = models.CharField(max_length=32, blank=True, default="")
    uecs = models.TextField(blank=True, default="")

    # Consent
    consent_treatment = models.BooleanField(default=False)
    consent_biological_samples = models.BooleanField(default=False)
    consent_date = models.DateTimeField(null=True, blank=True)

    registered_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="registered_patients",
    )
    status = models.CharField(
        max_length=16,
        choices=PatientStatus.choices,
        default=PatientStatus.ACTIVE,
        db_index=True,
    )

    class Meta:
        db_table = "patients_patient"
        indexes = [
            models.Index(fields=["last_name", "first_name"]),
            models.Index(fields=["status", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"{self.patient_number} {self.full_name}"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
