class InternalURIs:
    API = "/api"
    V1 = API + "/v1"
    DOCUMENTS = V1 + "/documents"
    DOCUMENT = DOCUMENTS + "/{document_id}"
    CHAT = V1 + "/chat"
    PDF_SEARCH = V1 + "/pdf/search"
    INJECT_CITATIONS = V1 + "/citations/inject"
