from docshield.config.settings import Settings
from docshield.extraction.direct_reader import DirectTextReader
from docshield.extraction.extractor import TextExtractor
from docshield.extraction.tesseract_client_adapter import TesseractClientAdapter
from docshield.extraction.tika_client_adapter import TikaClientAdapter


class TextExtractorFactory:
    @staticmethod
    def create(settings: Settings) -> TextExtractor:
        return TextExtractor(
            direct=DirectTextReader(),
            tika=TikaClientAdapter(
                base_url=settings.tika_url,
                timeout_seconds=settings.tika_timeout_seconds,
                metadata_timeout_seconds=settings.tika_metadata_timeout_seconds,
                health_timeout_seconds=settings.health_check_timeout_seconds,
            ),
            ocr=TesseractClientAdapter(
                base_url=settings.tesseract_url,
                timeout_seconds=settings.ocr_timeout_seconds,
                health_timeout_seconds=settings.health_check_timeout_seconds,
                language=settings.ocr_language,
                psm=settings.ocr_psm,
                oem=settings.ocr_oem,
            ),
            max_file_size_bytes=settings.max_file_size_bytes,
            max_text_length=settings.max_text_length,
            hybrid_file_types=settings.hybrid_file_types,
        )
