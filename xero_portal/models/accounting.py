from pydantic import BaseModel, Field
from typing import Optional, List, Dict
from decimal import Decimal


class ContactForm(BaseModel):
    """Form model for creating a contact."""
    Name: str = Field(min_length=1)

    def to_payload(self) -> Dict:
        return {"Name": self.Name}


class InvoiceForm(BaseModel):
    """Form model for creating an invoice with a single line item."""
    Type: str = "ACCREC"
    Contact: str = Field(min_length=1)
    Date: str
    DueDate: str = ""
    Description: str
    Quantity: Decimal
    Price: Decimal
    AccountCode: str = ""
    Status: str = "DRAFT"

    def to_payload(self) -> Dict:
        return {
            "Type": self.Type,
            "Contact": {"Name": self.Contact},
            "Date": self.Date,
            "DueDate": self.DueDate or "",
            "LineItems": [{
                "Description": self.Description,
                "Quantity": float(self.Quantity),
                "UnitAmount": float(self.Price),
                "AccountCode": self.AccountCode or "",
            }],
            "Status": self.Status,
        }


class InvoiceFilterForm(BaseModel):
    """Form model for the raw invoice filter."""
    explicitQueryStatus: Optional[str] = None
    explicitQueryContactIds: Optional[str] = None

    def to_filter(self) -> Dict[str, List[str]]:
        """Map the form onto Xero's Statuses and ContactIDs query parameters."""
        query = {}
        if self.explicitQueryContactIds:
            contact_ids = _split_list(self.explicitQueryContactIds)
            if contact_ids:
                query["ContactIDs"] = contact_ids
        if self.explicitQueryStatus:
            statuses = [status.upper() for status in _split_list(self.explicitQueryStatus)]
            if statuses:
                query["Statuses"] = statuses
        return query


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.replace("\n", ",").split(",") if item.strip()]


# Fixed invoice posted by the /createinvoiceRAW page
SAMPLE_INVOICE: Dict = {
    "Type": "ACCREC",
    "Contact": {
        "Name": "Jem The Cat"
    },
    "Date": "2018-09-01",
    "DueDate": "2018-09-02",
    "LineItems": [{
        "Description": "Consulting services as agreed (20% off standard rate)",
        "Quantity": "10",
        "UnitAmount": "100.00",
        "AccountCode": "200"
    }],
    "Status": "SUBMITTED"
}
