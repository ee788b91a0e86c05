from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any

from contracts.layout import LayoutDocument
from contracts.protocols import (
    Candidate,
    DocumentKind,
    PipelineError,
    PipelineResult,
    ProtocolHints,
    Record,
    ReviewFlag,
    SourceStrategy,
    StitchInfo,
    StitchMethod,
    TitleStatus,
)
from read_pdf.module import read_pdf_bytes
from tables.reconstruct import reconstruct_tables

from .classifier import classify_document
from .codes import find_code, header_pattern
from .config import PipelineConfig
from .drug_names import DrugNameCanonicalizer
from .merge import merge_candidates, validate_candidates
from .metadata import extract_metadata
from .quality import quality_score
from .rules import RuleSet
from .stitching import (
    SectionIndex,
    build_section_index,
    derive_dci_from_section,
    fill_dci_from_content,
    stitch_candidate,
)
from .tabular_parser import parse_table_candidates
from .text_parser import parse_text_candidates
from .titles import clean_title_hint, extract_title_from_content, resolve_title

SINGLE_CONFIDENCE_HINT = 80.0
SINGLE_CONFIDENCE_HEADER = 75.0
SINGLE_CONFIDENCE_BEST_EFFORT = 50.0
SINGLE_CODE_SCAN_LINES = 40


def _warning(code: str, message: str, **detail: Any) -> dict[str, Any]:
    w: dict[str, Any] = {"code": code, "message": message}
    w.update(detail)
    return w


def _list_candidates(
    document: LayoutDocument,
    *,
    config: PipelineConfig,
    ruleset: RuleSet,
    logger: logging.Logger,
    meta: dict[str, Any],
) -> tuple[list[Candidate], str]:
    tables, table_meta = reconstruct_tables(document, config.tables)
    meta["tables"] = table_meta

    table_cands, row_warnings = parse_table_candidates(tables, ruleset=ruleset, logger=logger)
    meta["warnings"].extend(row_warnings)

    text_cands: list[Candidate] = []
    if config.always_run_free_text or not table_cands:
        text_cands, line_warnings = parse_text_candidates(document, ruleset=ruleset, logger=logger)
        meta["warnings"].extend(line_warnings)

    merged = merge_candidates(table_cands, text_cands)
    validated = validate_candidates(merged, min_confidence=config.min_candidate_confidence, logger=logger)

    meta["counts"].update(
        {
            "tables": len(tables),
            "table_candidates": len(table_cands),
            "text_candidates": len(text_cands),
            "merged": len(merged),
            "validated": len(validated),
        }
    )
    logger.info(
        "Parsed %d table and %d text candidates from %d tables; %d kept after merge/validation",
        len(table_cands),
        len(text_cands),
        len(tables),
        len(validated),
    )

    if not validated:
        method = "none"
    elif table_cands and not text_cands:
        method = "table"
    elif text_cands and not table_cands:
        method = "text"
    else:
        method = "hybrid"
    return validated, method


def _single_candidate(
    document: LayoutDocument,
    *,
    hints: ProtocolHints,
    meta: dict[str, Any],
) -> Candidate | None:
    """
    The whole document as one record, keyed by hint, first header, or first code near the top.
    """

    text = document.plain_text
    lines = text.split("\n")

    header = header_pattern(None).search(text)
    if hints.known_code and hints.known_code.strip():
        code, confidence, code_source = hints.known_code.strip(), SINGLE_CONFIDENCE_HINT, "hint"
    elif header is not None:
        code, confidence, code_source = header.group(1).upper(), SINGLE_CONFIDENCE_HEADER, "header"
    else:
        m = find_code("\n".join(lines[:SINGLE_CODE_SCAN_LINES]))
        if m is None:
            return None
        code, confidence, code_source = m.group(1), SINGLE_CONFIDENCE_BEST_EFFORT, "first_code"
    meta["code_source"] = code_source

    title = clean_title_hint(hints.expected_title)
    title_source = "hint"
    if not title:
        extracted = extract_title_from_content(code, text)
        title, title_source = extracted if extracted is not None else ("", "none")
    meta["single_title_source"] = title_source

    dci = None
    own_header = header_pattern(code).search(text)
    if own_header is not None:
        start = text.rfind("\n", 0, own_header.start()) + 1
        dci = derive_dci_from_section(text[start:].lstrip())

    return Candidate(
        code=code,
        title=title,
        dci=dci,
        content=text.strip(),
        page_number=document.pages[0].page_num if document.pages else 0,
        confidence=confidence,
        source_strategy=SourceStrategy.DOCUMENT,
        stitch=StitchInfo(
            method=StitchMethod.SECTION,
            start_line=0,
            end_line=len(lines),
            start_page=document.pages[0].page_num if document.pages else None,
            end_page=document.pages[-1].page_num if document.pages else None,
        ),
    )


def _review_flags(
    cand: Candidate,
    *,
    quality: float,
    title_status: TitleStatus,
    config: PipelineConfig,
) -> tuple[ReviewFlag, ...]:
    flags: list[ReviewFlag] = []
    if cand.confidence < config.review_confidence_threshold:
        flags.append(ReviewFlag.LOW_CONFIDENCE)
    if quality < config.review_quality_threshold:
        flags.append(ReviewFlag.LOW_QUALITY)
    if title_status == TitleStatus.UNCORRECTED:
        flags.append(ReviewFlag.TITLE_UNCORRECTED)
    if cand.source_strategy != SourceStrategy.DOCUMENT and cand.stitch.method == StitchMethod.NONE:
        flags.append(ReviewFlag.STITCHING_MISS)
    if cand.stitch.window_capped:
        flags.append(ReviewFlag.STITCH_WINDOW_CAPPED)
    if cand.stitch.method == StitchMethod.FALLBACK:
        flags.append(ReviewFlag.FALLBACK_CONTENT)
    return tuple(flags)


def finalize_candidate(
    cand: Candidate,
    *,
    index: SectionIndex | None,
    config: PipelineConfig,
    ruleset: RuleSet,
    canonicalizer: DrugNameCanonicalizer,
    logger: logging.Logger,
) -> Record:
    """
    Stitch (list documents only), correct the title, canonicalize drug names,
    score quality, extract metadata and freeze the result.
    """

    if index is not None:
        cand = stitch_candidate(
            cand,
            index,
            ruleset=ruleset,
            min_section_gain_chars=config.min_section_gain_chars,
            fallback_window_lines=config.fallback_window_lines,
            logger=logger,
        )
    cand = fill_dci_from_content(cand)

    resolution = resolve_title(
        code=cand.code, title=cand.title, dci=cand.dci, content=cand.content, ruleset=ruleset
    )
    if resolution.status == TitleStatus.CORRECTED:
        logger.debug(
            "%s: title %r corrected to %r via %s %s",
            cand.code,
            cand.title,
            resolution.title,
            resolution.source,
            list(resolution.signatures),
        )

    title = canonicalizer.expand(resolution.title) or ""
    dci = canonicalizer.expand(cand.dci)

    if cand.stitch.start_page is not None and cand.stitch.end_page is not None:
        page_count = cand.stitch.end_page - cand.stitch.start_page + 1
    else:
        page_count = 1
    quality = round(quality_score(cand.content, page_count, ruleset), 2)
    md = extract_metadata(cand.content, ruleset)

    return Record(
        code=cand.code,
        title=title,
        dci=dci,
        content=cand.content,
        additional_info=cand.additional_info,
        page_number=cand.page_number,
        confidence=cand.confidence,
        source_strategy=cand.source_strategy,
        quality_score=quality,
        title_status=resolution.status,
        title_source=resolution.source,
        review_flags=_review_flags(cand, quality=quality, title_status=resolution.status, config=config),
        adjustments=cand.adjustments,
        stitch=cand.stitch,
        sublists=md.sublists,
        prescribers=md.prescribers,
        categories=md.categories,
        keywords=md.keywords,
    )


def run_protocol_pipeline_on_layout(
    document: LayoutDocument,
    *,
    hints: ProtocolHints | None = None,
    config: PipelineConfig | None = None,
) -> PipelineResult:
    """
    Turn an already-read layout into protocol records.

    Never raises for document content: per-row and per-candidate failures are
    logged and recorded in `meta["warnings"]`, and a document without protocol
    structure yields an empty, `ok=True` result with a NO_STRUCTURE_FOUND warning.
    """

    config = config or PipelineConfig()
    hints = hints or ProtocolHints()
    ruleset = config.get_ruleset()
    logger = config.get_logger()

    meta: dict[str, Any] = {
        "ruleset_version": ruleset.version,
        "page_count": document.page_count,
        "counts": {},
        "warnings": [],
    }

    label = " ".join(t for t in (hints.expected_title, hints.source_name) if t)
    classification = classify_document(document, ruleset=ruleset, title=label or None)
    meta["classification"] = classification.to_dict()
    logger.info(
        "Classified document as %s (%s)",
        classification.kind.value,
        ", ".join(classification.reasons) or "no list indicators",
    )

    index: SectionIndex | None = None
    if classification.kind == DocumentKind.LIST:
        candidates, method = _list_candidates(document, config=config, ruleset=ruleset, logger=logger, meta=meta)
        if candidates:
            index = build_section_index(document, ruleset=ruleset, window_lines=config.section_window_lines)
            meta["counts"]["sections"] = len(index.sections)
    else:
        single = _single_candidate(document, hints=hints, meta=meta)
        candidates = [single] if single is not None else []
        method = "document" if single is not None else "none"

    if not candidates:
        logger.info("No protocol structure found")
        meta["warnings"].append(_warning("NO_STRUCTURE_FOUND", "No protocol codes could be recovered"))

    canonicalizer = DrugNameCanonicalizer.from_ruleset(ruleset)
    records: list[Record] = []
    for cand in candidates:
        try:
            records.append(
                finalize_candidate(
                    cand,
                    index=index,
                    config=config,
                    ruleset=ruleset,
                    canonicalizer=canonicalizer,
                    logger=logger,
                )
            )
        except Exception as e:
            logger.warning("Candidate %s could not be enriched: %r", cand.code, e)
            meta["warnings"].append(
                _warning("CANDIDATE_ENRICH_FAILED", "Candidate dropped", candidate_code=cand.code, error=repr(e))
            )

    meta["counts"]["records"] = len(records)
    meta["counts"]["needs_review"] = sum(1 for r in records if r.needs_review)
    return PipelineResult(
        ok=True,
        document_kind=classification.kind,
        method=method,
        records=records,
        errors=[],
        meta=meta,
    )


def run_protocol_pipeline(
    pdf_bytes: bytes,
    *,
    hints: ProtocolHints | None = None,
    config: PipelineConfig | None = None,
) -> PipelineResult:
    """
    PDF bytes (+ optional hints) -> zero or more protocol records.

    An unreadable PDF yields `ok=False` with the reader's error; nothing is retried.
    """

    config = config or PipelineConfig()
    read_config = config.read
    if read_config.logger is None and config.logger is not None:
        read_config = replace(read_config, logger=config.logger)

    read = read_pdf_bytes(pdf_bytes, config=read_config)
    if not read.ok or read.document is None:
        return PipelineResult(
            ok=False,
            document_kind=None,
            method="none",
            records=[],
            errors=[PipelineError(code=e.code, message=e.message, detail=e.detail) for e in read.errors],
            meta={"read": read.meta, "warnings": []},
        )

    result = run_protocol_pipeline_on_layout(read.document, hints=hints, config=config)
    result.meta["read"] = read.meta
    return result
