"""
Constants used in the document processing service.
"""

# Supported file types for document processing (text layer required)
SUPPORTED_DOCUMENT_FILE_TYPES = {'pdf'}

DEFAULT_VENDOR_NAME = "Unknown Vendor"

# Prompt for Gemini to extract the priced terms of a contract from its text
CONTRACT_EXTRACTION_PROMPT = """
You are an expert contract analysis AI. Extract the commercial terms from the contract text below.
The output MUST be a single valid JSON object. Do NOT include any text outside of the JSON object.
The JSON object should conform to the following schema:
{
    "contract_id": "The contract number or reference printed on the document. String or null.",
    "vendor_name": "The full legal name of the supplier, vendor, or service provider. String or null.",
    "effective_date": "Date the contract becomes effective (YYYY-MM-DD). String or null.",
    "expiration_date": "Date the contract expires (YYYY-MM-DD). String or null.",
    "billable_items": [
        {
            "description": "The complete name of the billable item or service, without prices or units. String.",
            "unit_price": "The contracted price per unit. Must be a Number.",
            "unit": "The billing unit (e.g., 'box', 'each', 'hour', 'user/month'). String.",
            "quantity": "Contracted or capped quantity, if stated. Number or null.",
            "conditions": "Any conditions attached to this price (tiers, minimums). String or null.",
            "page_number": "1-based page number where this price appears. Integer.",
            "confidence": "Your confidence in this item between 0 and 1. Number."
        }
    ],
    "payment_terms": "Payment terms (e.g., Net 30). String or null.",
    "penalty_clauses": ["Each penalty clause summarised in one sentence. Array of strings or []."],
    "compliance_requirements": ["Each compliance requirement. Array of strings or []."],
    "confidence": "Your overall confidence in this extraction between 0 and 1. Number."
}

If the text is not a contract, return {"error": "<reason>"}.
Ensure all monetary values are extracted as numbers (e.g., 123.45, not "123.45 USD").
Page breaks in the text are marked with lines of the form "--- Page N ---".

Contract Text:
"""

# Prompt for Gemini to extract invoice header and line items from its text
INVOICE_EXTRACTION_PROMPT = """
You are an expert invoice extraction AI. Extract the invoice details from the text below.
The output MUST be a single valid JSON object. Do NOT include any text outside of the JSON object.
The JSON object should conform to the following schema:
{
    "invoice_number": "The invoice number printed on the document. String or null.",
    "vendor_name": "The full legal name of the issuing vendor. String or null.",
    "invoice_date": "Invoice date (YYYY-MM-DD). String or null.",
    "due_date": "Payment due date (YYYY-MM-DD). String or null.",
    "line_items": [
        {
            "description": "The complete name of the item or service. It MUST NOT include quantity, units or prices. String.",
            "quantity": "The numerical quantity. Default to 1 if not stated. Number.",
            "unit_price": "The price per unit. NEVER use 0 unless the document explicitly states it. Number.",
            "total_price": "The line total (quantity * unit_price) as printed. Number.",
            "page_number": "1-based page number where this line appears. Integer."
        }
    ],
    "total_amount": "The invoice grand total. Number.",
    "confidence": "Your overall confidence in this extraction between 0 and 1. Number."
}

If the text is not an invoice, return {"error": "<reason>"}.
Ensure all monetary values are extracted as numbers (e.g., 123.45, not "123.45 USD").
Page breaks in the text are marked with lines of the form "--- Page N ---".

Invoice Text:
"""
