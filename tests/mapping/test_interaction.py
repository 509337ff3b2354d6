"""Tests for interaction wiring traces."""

from collections.abc import Callable
from pathlib import Path

import pytest

from axtrace.core.errors import ErrorCode, TraceError
from axtrace.index._internal.parsing.sanitize import blank_strings_and_comments
from axtrace.mapping.contract import EnrichedElement
from axtrace.mapping.elements import UIElement
from axtrace.mapping.interaction import (
    Verdict,
    WiringKind,
    calls_in_function,
    find_handlers,
    find_wiring,
    looks_interactive,
    trace_interaction,
)

CHECKOUT = """import UIKit

final class CheckoutViewController: UIViewController {
    private let payButton = UIButton()
    // payButton.addTarget(self, action: #selector(legacyPay), for: .touchUpInside)

    override func viewDidLoad() {
        super.viewDidLoad()
        payButton.accessibilityIdentifier = "checkout.pay"
        payButton.addTarget(self, action: #selector(didTapPay), for: .touchUpInside)
        let tap = UITapGestureRecognizer(target: self, action: #selector(Self.dismissKeyboard))
        view.addGestureRecognizer(tap)
    }

    @objc private func didTapPay() {
        validateCart()
        paymentService.submit(order)
    }

    @objc func dismissKeyboard() {
        view.endEditing(true)
    }
}
"""

CART = """import SwiftUI

struct CartView: View {
    var body: some View {
        VStack {
            Text("Total")
                .accessibilityIdentifier("cart.total")
            Button("Checkout") {
                checkout()
            }
            .accessibilityIdentifier("cart.checkout")
            Image("promo")
                .onTapGesture(count: 2) { showPromo() }
        }
    }
}
"""


@pytest.fixture
def project(tmp_path: Path, write_files: Callable[[Path, dict[str, str]], Path]) -> Path:
    return write_files(
        tmp_path / "Shop",
        {"App/CheckoutViewController.swift": CHECKOUT, "App/CartView.swift": CART},
    )


def _mapped(
    file: str | None,
    line: int | None,
    *,
    identifier: str = "",
    class_name: str = "UIButton",
    element_type: str = "Button",
) -> EnrichedElement:
    element = UIElement(
        id=identifier or f"{class_name}_anon_1",
        class_name=class_name,
        element_type=element_type,
        identifier=identifier,
    )
    return EnrichedElement(element=element, file=file, line=line, confidence=0.9)


def _masked(text: str) -> list[str]:
    return blank_strings_and_comments(text).split("\n")


class TestTraceInteraction:
    def test_target_action_and_gesture_handlers(self, project: Path) -> None:
        enriched = _mapped("App/CheckoutViewController.swift", 9, identifier="checkout.pay")

        trace = trace_interaction(enriched, project)

        assert trace.verdict is Verdict.WIRED
        assert [(s.kind, s.line, s.handler) for s in trace.signals] == [
            (WiringKind.TARGET_ACTION, 10, "didTapPay"),
            (WiringKind.GESTURE_SELECTOR, 11, "dismissKeyboard"),
        ]
        assert [(h.name, h.line, h.calls) for h in trace.handlers] == [
            ("didTapPay", 15, ("validateCart", "submit")),
            ("dismissKeyboard", 20, ("endEditing",)),
        ]
        assert trace.snippet_start == 1
        assert trace.snippet[trace.focus_line - 1].strip().startswith("payButton.accessibility")

    def test_context_window_limits_signals(self, project: Path) -> None:
        enriched = _mapped("App/CheckoutViewController.swift", 9, identifier="checkout.pay")

        trace = trace_interaction(enriched, project, context_lines=1)

        assert (trace.snippet_start, trace.snippet_end) == (8, 10)
        assert [s.kind for s in trace.signals] == [WiringKind.TARGET_ACTION]
        assert [h.name for h in trace.handlers] == ["didTapPay"]

    def test_swiftui_button_and_tap_gesture(self, project: Path) -> None:
        enriched = _mapped("App/CartView.swift", 11, identifier="cart.checkout")

        trace = trace_interaction(enriched, project)

        assert [(s.kind, s.line) for s in trace.signals] == [
            (WiringKind.BUTTON_ACTION, 8),
            (WiringKind.ON_TAP_GESTURE, 13),
        ]
        assert trace.handlers == ()
        assert trace.verdict is Verdict.WIRED

    def test_display_only_text(self, project: Path) -> None:
        enriched = _mapped(
            "App/CartView.swift",
            6,
            identifier="cart.total",
            class_name="UILabel",
            element_type="StaticText",
        )

        trace = trace_interaction(enriched, project, context_lines=1)

        assert trace.signals == ()
        assert trace.verdict is Verdict.DISPLAY_ONLY

    def test_interactive_element_without_wiring(self, project: Path) -> None:
        enriched = _mapped("App/CartView.swift", 6, identifier="cart.buy")

        trace = trace_interaction(enriched, project, context_lines=1)

        assert trace.verdict is Verdict.LIKELY_MISSING

    def test_handlers_elsewhere_in_file(self, project: Path) -> None:
        """Without wiring nearby, every func in the file is a candidate handler."""
        enriched = _mapped("App/CheckoutViewController.swift", 20)

        trace = trace_interaction(enriched, project, context_lines=1)

        assert trace.signals == ()
        assert [h.name for h in trace.handlers] == ["viewDidLoad", "didTapPay", "dismissKeyboard"]
        assert trace.verdict is Verdict.LIKELY_WIRED

    def test_focus_falls_back_to_identifier_line(self, project: Path) -> None:
        enriched = _mapped("App/CheckoutViewController.swift", None, identifier="checkout.pay")

        trace = trace_interaction(enriched, project, context_lines=0)

        assert trace.focus_line == 9

    def test_to_dict(self, project: Path) -> None:
        enriched = _mapped("App/CartView.swift", 8, identifier="cart.checkout")

        data = trace_interaction(enriched, project, context_lines=0).to_dict()

        assert data["verdict"] == "wired"
        assert data["snippet"] == [{"line": 8, "text": '            Button("Checkout") {'}]
        assert data["signals"][0]["kind"] == "button_action"


class TestTraceErrors:
    def test_unmapped_element(self, project: Path) -> None:
        with pytest.raises(TraceError) as exc_info:
            trace_interaction(_mapped(None, None, identifier="x"), project)

        assert exc_info.value.code is ErrorCode.TRACE_UNMAPPED

    def test_file_outside_root_refused(self, project: Path) -> None:
        (project.parent / "Secret.swift").write_text("let key = 1\n")

        with pytest.raises(TraceError) as exc_info:
            trace_interaction(_mapped("../Secret.swift", 1), project)

        assert exc_info.value.code is ErrorCode.TRACE_OUTSIDE_ROOT

    def test_missing_file(self, project: Path) -> None:
        with pytest.raises(TraceError) as exc_info:
            trace_interaction(_mapped("App/Gone.swift", 1), project)

        assert exc_info.value.code is ErrorCode.TRACE_SOURCE_NOT_FOUND


class TestHelpers:
    def test_commented_wiring_ignored(self) -> None:
        text = '// view.addTarget(self, action: #selector(old), for: .touchUpInside)\nlabel.text = ".onTapGesture {"'

        assert find_wiring(_masked(text), text.split("\n")) == []

    def test_several_signals_on_one_line(self) -> None:
        text = "table.delegate = self; let a = UIAction { _ in reload() }"

        signals = find_wiring(_masked(text), [text], first_line=5)

        assert [(s.kind, s.line) for s in signals] == [
            (WiringKind.DELEGATE_ASSIGNMENT, 5),
            (WiringKind.UI_ACTION, 5),
        ]

    def test_find_handlers_restricted_to_names(self) -> None:
        lines = _masked("func a() {}\n@IBAction func b(_ sender: Any) {}\nfunc c() {}")

        assert find_handlers(lines, {"b"}) == [("b", 2)]
        assert find_handlers(lines, set()) == [("a", 1), ("b", 2), ("c", 3)]

    def test_calls_skip_signature_and_keywords(self) -> None:
        lines = _masked(
            "func submit(\n    order: Order\n) {\n    guard isValid(order) else { return }\n"
            "    send(order)\n}\nfunc other() { never() }"
        )

        assert calls_in_function(lines, 1) == ["isValid", "send"]

    def test_calls_single_line_body(self) -> None:
        assert calls_in_function(_masked("func a() { b(); c() }"), 1) == ["b", "c"]

    @pytest.mark.parametrize(
        ("element", "expected"),
        [
            (UIElement(id="a", class_name="UISwitch"), True),
            (UIElement(id="b", class_name="UIView", element_type="Tab"), True),
            (UIElement(id="c", class_name="UIView", identifier="profile.save"), True),
            (UIElement(id="d", class_name="UILabel", element_type="StaticText"), False),
        ],
    )
    def test_looks_interactive(self, element: UIElement, expected: bool) -> None:
        assert looks_interactive(element) is expected
