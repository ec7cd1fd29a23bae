import pymupdf
import pytest

from rxscan.database.connection import DatabaseManager, normalize_database_url
from rxscan.database.models import Prescription
from rxscan.models.prescription import ExtractedMedicine, PrescriptionAnalysis
from rxscan.services.report_service import COLUMN_SHARES, MARGIN, ReportService


@pytest.fixture
def analysis():
    return PrescriptionAnalysis(
        doctor_name="Ramesh Kumar",
        diagnosis="Viral fever",
        medicines=[
            ExtractedMedicine("Dolo", "650mg", "BD", "5 days", "Dolo 650mg twice a day for 5 days"),
            ExtractedMedicine("Azee", "500mg", "OD", "3 days", "Azee 500mg once daily 3 days"),
        ],
        date="3/7/2024",
        confidence_label="Local Custom OCR",
    )


class TestPrescriptionRepository:

    def test_save_and_get(self, repository, analysis):
        uid = repository.save_prescription(analysis, "raw text", "/uploads/scan.png", "patient-1")
        stored = repository.get_prescription(uid)

        assert stored["id"] == uid
        assert stored["patientId"] == "patient-1"
        assert stored["doctorName"] == "Ramesh Kumar"
        assert stored["diagnosis"] == "Viral fever"
        assert stored["imageUrl"] == "/uploads/scan.png"
        assert stored["pdfUrl"] is None
        assert stored["extractedText"] == "raw text"
        assert stored["medicines"] == [
            {"name": "Dolo", "dosage": "650mg", "frequency": "BD", "duration": "5 days"},
            {"name": "Azee", "dosage": "500mg", "frequency": "OD", "duration": "3 days"},
        ]

    def test_get_unknown(self, repository):
        assert repository.get_prescription("missing") is None

    def test_list_filters_by_patient_newest_first(self, repository, analysis):
        first = repository.save_prescription(analysis, "", "/uploads/a.png", "patient-1")
        repository.save_prescription(analysis, "", "/uploads/b.png", "patient-2")
        third = repository.save_prescription(analysis, "", "/uploads/c.png", "patient-1")

        ids = [p["id"] for p in repository.list_prescriptions("patient-1")]
        assert ids == [third, first]
        assert len(repository.list_prescriptions()) == 3

    def test_attach_report(self, repository, analysis):
        uid = repository.save_prescription(analysis, "", "/uploads/a.png", "patient-1")
        assert repository.attach_report(uid, "/uploads/report.pdf")
        assert repository.get_prescription(uid)["pdfUrl"] == "/uploads/report.pdf"
        assert not repository.attach_report("missing", "/uploads/report.pdf")

    def test_delete_removes_stored_files(self, repository, storage, analysis):
        scan = storage.store_blob(b"scan", "scan.png")
        report = storage.store_blob(b"%PDF-1.7", "report.pdf")
        uid = repository.save_prescription(analysis, "", scan.url, "patient-1")
        repository.attach_report(uid, report.url)

        assert repository.delete_prescription(uid)
        assert repository.get_prescription(uid) is None
        assert not scan.path.exists()
        assert not report.path.exists()
        assert not repository.delete_prescription(uid)


class TestStorage:

    def test_names_are_unique_and_keep_extension(self, storage):
        first = storage.store_blob(b"a", "Scan.JPG")
        second = storage.store_blob(b"b", "Scan.JPG")
        assert first.url != second.url
        assert first.url.endswith(".jpg")
        assert first.path.read_bytes() == b"a"

    def test_foreign_urls_are_ignored(self, storage):
        assert storage.resolve("https://example.com/scan.png") is None
        assert not storage.delete_blob("/static/scan.png")


class TestReportService:

    def test_render_lists_every_medicine(self, storage, analysis):
        content = ReportService(storage=storage).render("abcdef12-3456", analysis, "Dolo 650mg twice a day")
        assert content.startswith(b"%PDF")

        doc = pymupdf.open(stream=content, filetype="pdf")
        text = "".join(page.get_text() for page in doc)
        doc.close()
        for expected in ("Ramesh Kumar", "Viral fever", "Dolo", "Azee", "ABCDEF12", "Prescribed Regimen"):
            assert expected in text

    def test_long_regimen_spills_onto_new_pages(self, storage, analysis):
        analysis.medicines = analysis.medicines * 30
        content = ReportService(storage=storage).render("abcdef12", analysis)

        doc = pymupdf.open(stream=content, filetype="pdf")
        assert doc.page_count > 1
        doc.close()

    def test_header_row_repeats_on_every_table_page(self, storage, analysis):
        analysis.medicines = analysis.medicines * 30
        doc = pymupdf.open(stream=ReportService(storage=storage).render("abcdef12", analysis), filetype="pdf")
        table_pages = [page.get_text() for page in doc if "Dolo" in page.get_text()]
        doc.close()

        assert len(table_pages) > 1
        for text in table_pages:
            assert "MEDICATION" in text
            assert "DURATION" in text

    def test_long_values_wrap_inside_their_boxes(self, storage, analysis):
        analysis.diagnosis = (
            "Acute exacerbation of chronic obstructive pulmonary disease with secondary "
            "bacterial infection of the lower respiratory tract requiring nebulisation"
        )
        analysis.medicines[0].name = "Amoxicillin Potassium Clavulanate Dispersible Paediatric Formulation"
        doc = pymupdf.open(stream=ReportService(storage=storage).render("abcdef12", analysis), filetype="pdf")
        page = doc[0]
        words = {w[4]: w for w in page.get_text("words")}
        page_width = page.rect.width
        doc.close()

        name_column_end = MARGIN + (page_width - 2 * MARGIN) * COLUMN_SHARES[0]
        for word in ("Amoxicillin", "Potassium", "Clavulanate", "Dispersible", "Paediatric", "Formulation"):
            assert words[word][2] <= name_column_end + 1
        for word in ("pulmonary", "bacterial", "respiratory", "nebulisation"):
            assert words[word][2] <= page_width - MARGIN

    def test_generate_stores_the_record(self, storage, analysis):
        url = ReportService(storage=storage).generate("abcdef12", analysis)
        assert url.startswith("/uploads/") and url.endswith(".pdf")
        assert storage.resolve(url).read_bytes().startswith(b"%PDF")


class TestDatabaseManager:

    def test_postgres_scheme_is_rewritten(self):
        assert normalize_database_url("postgres://u:p@db/rx") == "postgresql://u:p@db/rx"
        assert normalize_database_url("sqlite://") == "sqlite://"

    def test_file_database_creates_its_directory(self, tmp_path):
        manager = DatabaseManager()
        manager.init_db(f"sqlite:///{tmp_path}/nested/rx.db")
        try:
            assert manager.is_initialized
            assert (tmp_path / "nested").is_dir()
            with manager.session_scope() as session:
                assert session.query(Prescription).count() == 0
        finally:
            manager.close()
        assert not manager.is_initialized

    def test_failed_transaction_rolls_back(self, db):
        with pytest.raises(RuntimeError):
            with db.session_scope() as session:
                session.add(Prescription(uid="abc", patient_id="patient-1"))
                raise RuntimeError("abort")

        with db.session_scope() as session:
            assert session.query(Prescription).count() == 0
