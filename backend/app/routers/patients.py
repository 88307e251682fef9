from fastapi import APIRouter, Depends, Query, Response, status

from app.deps import get_store
from app.schemas.patient import (
    ChartOut,
    PatientBalanceOut,
    PatientCreate,
    PatientOut,
    PatientUpdate,
    ToothIn,
)
from app.services import finance
from app.services.clinic_store import ClinicStore
from app.services.dental_chart import chart_summary
from app.services.report_pdf import build_patient_statement_pdf
from app.services.reports import patient_statement
from app.services.snapshot import PatientView

router = APIRouter(prefix="/patients", tags=["patients"])


def _chart_out(patient) -> ChartOut:
    return ChartOut(
        patient_id=patient.id,
        teeth=patient.dental_chart,
        summary=chart_summary(patient.dental_chart),
    )


@router.get("", response_model=list[PatientOut])
def list_patients(
    store: ClinicStore = Depends(get_store),
    query: str | None = Query(default=None, alias="q"),
):
    return store.list_patients(query)


@router.post("", response_model=PatientOut, status_code=status.HTTP_201_CREATED)
def create_patient(payload: PatientCreate, store: ClinicStore = Depends(get_store)):
    return store.add_patient(payload.model_dump())


@router.get("/{patient_id}", response_model=PatientOut)
def get_patient(patient_id: int, store: ClinicStore = Depends(get_store)):
    return store.get_patient(patient_id)


@router.patch("/{patient_id}", response_model=PatientOut)
def update_patient(patient_id: int, payload: PatientUpdate, store: ClinicStore = Depends(get_store)):
    return store.update_patient(patient_id, payload.model_dump(exclude_unset=True))


@router.get("/{patient_id}/chart", response_model=ChartOut)
def get_chart(patient_id: int, store: ClinicStore = Depends(get_store)):
    return _chart_out(store.get_patient(patient_id))


@router.put("/{patient_id}/chart", response_model=ChartOut)
def replace_chart(
    patient_id: int, payload: dict[str, ToothIn], store: ClinicStore = Depends(get_store)
):
    chart = {tooth_id: tooth.model_dump(mode="json") for tooth_id, tooth in payload.items()}
    return _chart_out(store.replace_chart(patient_id, chart))


@router.put("/{patient_id}/chart/{tooth_id}", response_model=ChartOut)
def update_tooth(
    patient_id: int, tooth_id: str, payload: ToothIn, store: ClinicStore = Depends(get_store)
):
    patient = store.update_tooth(patient_id, tooth_id.upper(), payload.model_dump(mode="json"))
    return _chart_out(patient)


@router.get("/{patient_id}/balance", response_model=PatientBalanceOut)
def patient_balance(patient_id: int, store: ClinicStore = Depends(get_store)):
    store.get_patient(patient_id)
    return finance.patient_balance(
        patient_id,
        store.list_treatment_records(patient_id=patient_id),
        store.list_payments(patient_id=patient_id),
    )


@router.get("/{patient_id}/statement.pdf")
def patient_statement_pdf(patient_id: int, store: ClinicStore = Depends(get_store)):
    patient = PatientView.model_validate(store.get_patient(patient_id))
    statement = patient_statement(store.snapshot(), patient)
    pdf_bytes = build_patient_statement_pdf(clinic_name=store.owner.clinic_name, statement=statement)
    filename = f"statement_patient_{patient_id}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
