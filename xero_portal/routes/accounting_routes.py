from decimal import Decimal
from typing import Optional
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from ..models.accounting import ContactForm, InvoiceForm, InvoiceFilterForm, SAMPLE_INVOICE
from ..platforms.xero import AccountingAPIClient
from ..templating import templates
from ..utils.logger import get_logger
from .dependencies import AuthorizedSession, get_authorized_session

logger = get_logger(__name__)
router = APIRouter()

CONTACTS_NAV = {"contacts": True, "nav": {"accounting": True}}
INVOICES_NAV = {"invoices": True, "nav": {"accounting": True}}


def contact_form(Name: str = Form(..., min_length=1)) -> ContactForm:
    return ContactForm(Name=Name)


def invoice_form(
    Type: str = Form("ACCREC"),
    Contact: str = Form(..., min_length=1),
    Date: str = Form(...),
    DueDate: str = Form(""),
    Description: str = Form(...),
    Quantity: Decimal = Form(...),
    Price: Decimal = Form(...),
    AccountCode: str = Form(""),
    Status: str = Form("DRAFT"),
) -> InvoiceForm:
    return InvoiceForm(
        Type=Type,
        Contact=Contact,
        Date=Date,
        DueDate=DueDate,
        Description=Description,
        Quantity=Quantity,
        Price=Price,
        AccountCode=AccountCode,
        Status=Status,
    )


def invoice_filter_form(
    explicitQueryStatus: Optional[str] = Form(None),
    explicitQueryContactIds: Optional[str] = Form(None),
) -> InvoiceFilterForm:
    return InvoiceFilterForm(
        explicitQueryStatus=explicitQueryStatus,
        explicitQueryContactIds=explicitQueryContactIds,
    )


def _form_error(request: Request, template: str, **context):
    def render(err: Exception) -> HTMLResponse:
        return templates.TemplateResponse(
            request, template, {**context, "outcome": "Error", "err": str(err)}, status_code=400
        )
    return render


# Contacts

@router.get("/contacts", response_class=HTMLResponse)
async def list_contacts(request: Request, gate: AuthorizedSession = Depends(get_authorized_session)):
    async def operation(xero_client: AccountingAPIClient):
        result = await xero_client.contacts.get()
        return templates.TemplateResponse(request, "contacts.html", {
            "contacts": result.get("Contacts") or [],
            "active": CONTACTS_NAV,
        })

    return await gate.run("/contacts", operation)


@router.get("/createcontact", response_class=HTMLResponse)
async def create_contact_page(request: Request):
    return templates.TemplateResponse(request, "createcontact.html", {"active": CONTACTS_NAV})


@router.post("/createcontact")
async def create_contact(
    request: Request,
    form: ContactForm = Depends(contact_form),
    gate: AuthorizedSession = Depends(get_authorized_session),
):
    async def operation(xero_client: AccountingAPIClient):
        await xero_client.contacts.create(form.to_payload())
        logger.info(f"Created contact {form.Name}")
        return RedirectResponse(url="/contacts", status_code=302)

    return await gate.run("/createcontact", operation, on_failure=_form_error(request, "createcontact.html"))


# Invoices

@router.get("/invoices", response_class=HTMLResponse)
async def list_invoices(request: Request, gate: AuthorizedSession = Depends(get_authorized_session)):
    async def operation(xero_client: AccountingAPIClient):
        result = await xero_client.invoices.get()
        return templates.TemplateResponse(request, "invoices.html", {
            "invoices": result.get("Invoices") or [],
            "active": INVOICES_NAV,
        })

    return await gate.run("/invoices", operation)


@router.get("/invoicesRAW", response_class=HTMLResponse)
async def list_raw_invoices(request: Request, gate: AuthorizedSession = Depends(get_authorized_session)):
    async def operation(xero_client: AccountingAPIClient):
        result = await xero_client.invoices.get()
        return templates.TemplateResponse(request, "invoicesRAW.html", {
            "invoices": result.get("Invoices") or [],
            "active": INVOICES_NAV,
        })

    return await gate.run("/invoicesRAW", operation)


@router.post("/filter", response_class=HTMLResponse)
async def filter_invoices(
    request: Request,
    form: InvoiceFilterForm = Depends(invoice_filter_form),
    gate: AuthorizedSession = Depends(get_authorized_session),
):
    query = form.to_filter()
    logger.info(f"Filtering invoices with {query}")

    async def operation(xero_client: AccountingAPIClient):
        result = await xero_client.invoices.get(query)
        return templates.TemplateResponse(request, "invoicesRAW.html", {
            "invoices": result.get("Invoices") or [],
            "filter": form,
            "active": INVOICES_NAV,
        })

    return await gate.run("/invoicesRAW", operation)


@router.get("/createinvoice", response_class=HTMLResponse)
async def create_invoice_page(request: Request):
    return templates.TemplateResponse(request, "createinvoice.html", {"active": INVOICES_NAV})


@router.post("/createinvoice")
async def create_invoice(
    request: Request,
    form: InvoiceForm = Depends(invoice_form),
    gate: AuthorizedSession = Depends(get_authorized_session),
):
    async def operation(xero_client: AccountingAPIClient):
        result = await xero_client.invoices.create(form.to_payload())
        logger.debug(f"Created invoice response: {result}")
        return RedirectResponse(url="/invoices", status_code=302)

    return await gate.run("/createinvoice", operation, on_failure=_form_error(request, "createinvoice.html"))


@router.get("/createinvoiceRAW", response_class=HTMLResponse)
async def create_sample_invoice_page(request: Request):
    return templates.TemplateResponse(request, "createinvoiceRAW.html", {
        "invoice": SAMPLE_INVOICE,
        "active": INVOICES_NAV,
    })


@router.post("/createinvoiceRAW")
async def create_sample_invoice(request: Request, gate: AuthorizedSession = Depends(get_authorized_session)):
    async def operation(xero_client: AccountingAPIClient):
        result = await xero_client.invoices.create(SAMPLE_INVOICE)
        logger.debug(f"Created sample invoice response: {result}")
        return RedirectResponse(url="/invoices", status_code=302)

    return await gate.run(
        "/createinvoiceRAW", operation, on_failure=_form_error(request, "createinvoiceRAW.html", invoice=SAMPLE_INVOICE)
    )
