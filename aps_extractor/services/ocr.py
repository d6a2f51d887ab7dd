import os
import io
import traceback
import fitz  # PyMuPDF
import cv2
import pytesseract
import numpy as np
from PIL import Image
from typing import Dict, Any, List, Tuple
from aps_extractor.core.config import settings
from aps_extractor.core.exceptions import ResultsExtractionException
import logging

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = [".jpg", ".jpeg", ".png", ".webp"]

def words_to_lines(data: Dict[str, List[Any]]) -> Tuple[str, float]:
    """
    Rebuild text lines from Tesseract word data

    Args:
        data: Output of ``pytesseract.image_to_data`` as a dict

    Returns:
        Tuple[str, float]: Newline separated text and the mean confidence of
        recognised words (0-100)
    """
    lines: Dict[Tuple[int, int, int], List[str]] = {}
    confidences = []

    for index, word in enumerate(data.get("text", [])):
        if not word or not word.strip():
            continue
        key = (data["block_num"][index], data["par_num"][index], data["line_num"][index])
        lines.setdefault(key, []).append(word.strip())

        confidence = float(data["conf"][index])
        if confidence > 0:
            confidences.append(confidence)

    text = "\n".join(" ".join(words) for words in lines.values())
    average = sum(confidences) / len(confidences) if confidences else 0.0
    return text, min(100.0, average)

class OCRService:
    """
    Service for reading results documents (images and PDFs) with Tesseract
    """
    def __init__(self):
        # Set Tesseract path if provided
        if settings.TESSERACT_PATH:
            pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_PATH

    async def extract_text(self, file_path: str) -> Dict[str, Any]:
        """
        Extract text from a file (image or PDF)

        Args:
            file_path: Path to the file

        Returns:
            Dict: Extracted text, OCR confidence (0-100) and metadata
        """
        file_extension = os.path.splitext(file_path)[1].lower()
        logger.info(f"Starting text extraction for file: {file_path} ({file_extension})")

        if file_extension != ".pdf" and file_extension not in IMAGE_EXTENSIONS:
            logger.error(f"Unsupported file type: {file_extension}")
            raise ResultsExtractionException(
                status_code=400,
                detail=f"Unsupported file type: {file_extension}"
            )

        try:
            if file_extension == ".pdf":
                logger.info("Processing as PDF file")
                return await self._extract_from_pdf(file_path)
            logger.info("Processing as image file")
            return await self._extract_from_image(file_path)

        except Exception as e:
            logger.error(f"Error during text extraction: {str(e)}")
            logger.error(f"Full traceback: {traceback.format_exc()}")
            raise ResultsExtractionException(
                status_code=500,
                detail=f"Error during text extraction: {str(e)}"
            )

    async def _extract_from_pdf(self, file_path: str) -> Dict[str, Any]:
        """
        Extract text from a PDF file, falling back to OCR of embedded images
        when the PDF has no text layer
        """
        with fitz.open(file_path) as pdf_document:
            text_by_page = []
            images = []

            for page_num in range(len(pdf_document)):
                page = pdf_document[page_num]
                text_by_page.append(page.get_text())

                for img_index, img in enumerate(page.get_images(full=True)):
                    base_image = pdf_document.extract_image(img[0])
                    images.append({
                        "page": page_num,
                        "index": img_index,
                        "image": Image.open(io.BytesIO(base_image["image"])).convert("RGB")
                    })

            page_count = len(pdf_document)

        full_text = "\n".join(text_by_page)
        # A text layer is exact
        confidence = 100.0

        if not full_text.strip() and images:
            ocr_texts = []
            ocr_confidences = []
            for img_data in images:
                preprocessed = await self._preprocess_image(img_data["image"])
                ocr_text, ocr_confidence = await self._ocr_image(preprocessed)
                if ocr_text:
                    ocr_texts.append(ocr_text)
                    ocr_confidences.append(ocr_confidence)

            full_text = "\n".join(ocr_texts)
            confidence = sum(ocr_confidences) / len(ocr_confidences) if ocr_confidences else 0.0
        elif not full_text.strip():
            confidence = 0.0

        return {
            "text": full_text,
            "confidence": confidence,
            "metadata": {
                "type": "pdf",
                "pages": page_count,
                "images_extracted": len(images)
            }
        }

    async def _extract_from_image(self, file_path: str) -> Dict[str, Any]:
        """
        Extract text from an image file
        """
        image = Image.open(file_path)
        image_format = image.format

        # Flatten transparency onto white, OpenCV expects plain RGB
        if image.mode in ("RGBA", "LA"):
            background = Image.new("RGB", image.size, (255, 255, 255))
            background.paste(image, mask=image.split()[-1])
            image = background
        elif image.mode != "RGB":
            image = image.convert("RGB")

        preprocessed_image = await self._preprocess_image(image)
        text, confidence = await self._ocr_image(preprocessed_image)

        return {
            "text": text,
            "confidence": confidence,
            "metadata": {
                "type": "image",
                "format": image_format,
                "size": image.size,
                "mode": image.mode
            }
        }

    async def _preprocess_image(self, image: Image.Image) -> Image.Image:
        """
        Grayscale, denoise and binarise a scan for Tesseract
        """
        open_cv_image = cv2.cvtColor(np.array(image), cv2.COLOR_RGB2BGR)
        gray = cv2.cvtColor(open_cv_image, cv2.COLOR_BGR2GRAY)
        denoised = cv2.fastNlMeansDenoising(gray, None, 10, 7, 21)

        thresh = cv2.adaptiveThreshold(
            denoised, 255, cv2.ADAPTIVE_THRESH_GAUSSIAN_C,
            cv2.THRESH_BINARY, 11, 2
        )

        kernel = cv2.getStructuringElement(cv2.MORPH_RECT, (2, 2))
        processed = cv2.morphologyEx(thresh, cv2.MORPH_CLOSE, kernel)

        return Image.fromarray(processed)

    async def _ocr_image(self, image: Image.Image) -> Tuple[str, float]:
        """
        Run Tesseract with each configured page segmentation mode and keep the
        most confident reading

        Returns:
            Tuple[str, float]: Text and its mean word confidence (0-100)
        """
        best_text = ""
        best_confidence = 0.0

        for psm in settings.OCR_PSM_MODES:
            try:
                data = pytesseract.image_to_data(
                    image,
                    lang=settings.TESSERACT_LANG,
                    config=f'--oem 3 --psm {psm}',
                    output_type=pytesseract.Output.DICT
                )
            except pytesseract.TesseractError as e:
                logger.warning(f"PSM {psm} failed: {str(e)}")
                continue

            text, confidence = words_to_lines(data)
            if confidence > best_confidence:
                best_confidence = confidence
                best_text = text

        logger.debug(f"Best OCR confidence: {best_confidence:.2f}%")
        return best_text, best_confidence
