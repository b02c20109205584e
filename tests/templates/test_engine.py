"""
Test template compilation and rendering.
"""

import pytest
from jinja2 import TemplateNotFound

from viewer.faults import CodeSyntaxFault, EvaluationFault, TemplateFault
from viewer.templates import BasicContext, HookingContext, RenderPass, Template, TemplateSource
from viewer.templates.engine import CodeBuilder
from viewer.templates.program import parse


class Shouting(HookingContext):
    def hook(self, value):
        return str(value).upper()


# ============================================================================
# Immediate rendering
# ============================================================================

def test_plain_text_renders_unchanged():
    source = "line one\n  line two\n"
    assert Template(source).render() == source


def test_interpolation():
    assert Template("1 + 2 = <%= 1 + 2 %>").render() == "1 + 2 = 3"


def test_values_and_mapping_context():
    assert Template("<%= name %>").render(name="ada") == "ada"
    assert Template("<%= name %>").render({"name": "grace"}) == "grace"


def test_object_context_attributes():
    ctx = BasicContext(user="linus", count=2)
    assert Template("<%= user %>:<%= count * 2 %>").render(ctx) == "linus:4"


def test_builtins_resolve_after_context():
    assert Template("<%= len(items) %>").render(items=[1, 2, 3]) == "3"


def test_none_renders_empty():
    assert Template("[<%= None %>]").render() == "[]"


def test_comment_produces_nothing():
    assert Template("a<%# ignored %>b").render() == "ab"


def test_loop_with_end():
    assert Template("<% for _ in range(3): %>x<% end %>").render() == "xxx"


def test_nested_blocks():
    template = Template(
        "<% for row in rows: %>"
        "<% for cell in row: %>[<%= cell %>]<% end %>;"
        "<% end %>"
    )
    assert template.render(rows=[[1, 2], [3]]) == "[1][2];[3];"


@pytest.mark.parametrize("n,expected", [(5, "big"), (1, "one"), (0, "none")])
def test_if_elif_else(n, expected):
    template = Template(
        "<% if n > 1: %>big<% elif n == 1: %>one<% else: %>none<% end %>"
    )
    assert template.render(n=n) == expected


def test_try_except():
    template = Template(
        "<% try: %><%= 1 / d %><% except ZeroDivisionError: %>inf<% end %>"
    )
    assert template.render(d=0) == "inf"
    assert template.render(d=2) == "0.5"


def test_multiline_statement():
    template = Template("<%\n  x = 1\n  y = 2\n%><%= x + y %>")
    assert template.render() == "3"


def test_trailing_dash_keeps_newline():
    assert Template("<%= 'a' -%>\nb").render() == "a\nb"


def test_content_block():
    template = Template("<main><%= content() %></main>")
    assert template.render(inner="body") == "<main>body</main>"
    assert template.render(inner=lambda: "called") == "<main>called</main>"
    assert template.render() == "<main></main>"


def test_hooking_context_sees_interpolations():
    assert Template("<%= word %>!").render(Shouting(word="hi")) == "HI!"


def test_hook_not_applied_to_deferred():
    assert Template("<%-> word %>").render(Shouting(word="hi")) == "hi"


def test_from_source():
    template = Template.from_source(TemplateSource("<%= 7 %>", "seven.tpl"))
    assert template.name == "seven.tpl"
    assert template.render() == "7"


def test_generated_source_inserts_pass_after_openers():
    template = Template("<% if True: %><% end %>")
    assert "if True:\n    pass\n" in template.python_source


# ============================================================================
# Deferred rendering
# ============================================================================

def test_deferred_sees_final_state():
    template = Template("<%-> items %>|<% items.append(2) %>")
    assert template.render(items=[1]) == "[1, 2]|"


def test_deferred_snapshot_keeps_rebound_names():
    template = Template("<% for i in range(3): %><%-> i %><% end %>")
    assert template.render() == "012"


def test_deferred_resolve_in_creation_order():
    template = Template(
        "<% seen = [] %>"
        "<%-> seen.append('a') or ''.join(seen) %>,"
        "<%-> seen.append('b') or ''.join(seen) %>"
    )
    assert template.render() == "a,ab"


def test_deferred_none_renders_empty():
    assert Template("[<%-> None %>]").render() == "[]"


def test_execute_leaves_placeholders_until_resolved():
    template = Template("a<%-> value %>c")
    render_pass = RenderPass()
    fragment = template.execute(render_pass=render_pass, value="b")

    assert len(fragment.bindings) == 1
    assert render_pass.bindings == fragment.bindings

    with pytest.raises(TemplateFault) as exc_info:
        fragment.join()
    assert exc_info.value.code == "DEFERRED_UNRESOLVED"

    assert render_pass.resolve(fragment) == "abc"


def test_literal_text_cannot_collide_with_placeholders():
    template = Template("<%= marker %><%-> 'late' %>")
    assert template.render(marker="<%-> 'late' %>") == "<%-> 'late' %>late"


def test_shared_render_pass_spans_templates():
    inner = Template("<%-> log[-1] %>")
    outer = Template("<%= content() %><% log.append('outer') %>")
    log = ["inner"]
    render_pass = RenderPass()

    fragment = inner.execute(render_pass=render_pass, log=log)
    fragment = outer.execute(render_pass=render_pass, inner=fragment, log=log)

    assert render_pass.resolve(fragment) == "outer"


# ============================================================================
# Errors
# ============================================================================

def test_evaluation_error_reports_line():
    template = Template("line one\n<%= missing_name %>", "page.tpl")

    with pytest.raises(EvaluationFault) as exc_info:
        template.render()

    fault = exc_info.value
    assert fault.template == "page.tpl"
    assert fault.line == 2
    assert "missing_name" in fault.source_code
    assert isinstance(fault.__cause__, NameError)
    assert "page.tpl:2" in str(fault)


def test_statement_error_reports_line():
    template = Template("a\n\n<% x = 1 / 0 %>", "div.tpl")

    with pytest.raises(EvaluationFault) as exc_info:
        template.render()

    assert exc_info.value.line == 3
    assert isinstance(exc_info.value.__cause__, ZeroDivisionError)


def test_error_inside_block_reports_its_own_line():
    template = Template(
        "<% for item in items: %>\n"
        "<%= item.name %>\n"
        "<% end %>",
        "list.tpl",
    )

    with pytest.raises(EvaluationFault) as exc_info:
        template.render(items=[1])

    assert exc_info.value.line == 2
    assert isinstance(exc_info.value.__cause__, AttributeError)


def test_deferred_error_reports_line():
    template = Template("x\ny\n<%-> 1 / 0 %>", "late.tpl")

    with pytest.raises(EvaluationFault) as exc_info:
        template.render()

    assert exc_info.value.line == 3


def test_nested_faults_pass_through():
    def missing():
        raise TemplateNotFound("other.tpl")

    with pytest.raises(TemplateNotFound):
        Template("<%= missing() %>").render(missing=missing)

    def broken():
        raise TemplateFault("CUSTOM", "inner failure", template="inner.tpl", line=9)

    with pytest.raises(TemplateFault) as exc_info:
        Template("<%= broken() %>").render(broken=broken)
    assert exc_info.value.code == "CUSTOM"
    assert exc_info.value.line == 9


def test_unclosed_block():
    with pytest.raises(CodeSyntaxFault) as exc_info:
        Template("a\n<% for x in y: %>b", "open.tpl")

    assert "never closed" in exc_info.value.reason
    assert exc_info.value.line == 2


def test_end_without_block():
    with pytest.raises(CodeSyntaxFault) as exc_info:
        Template("<% end %>")
    assert "without an open block" in exc_info.value.reason


def test_else_without_block():
    with pytest.raises(CodeSyntaxFault):
        Template("<% else: %><% end %>")


def test_empty_expression():
    with pytest.raises(CodeSyntaxFault) as exc_info:
        Template("<%= %>")
    assert exc_info.value.reason == "empty expression"


def test_python_syntax_error_reports_line():
    with pytest.raises(CodeSyntaxFault) as exc_info:
        Template("ok\nok\n<%= 1 + %>", "syntax.tpl")

    fault = exc_info.value
    assert fault.code == "CODE_SYNTAX"
    assert fault.template == "syntax.tpl"
    assert fault.line == 3


def test_deferred_syntax_error():
    with pytest.raises(CodeSyntaxFault) as exc_info:
        Template("<%-> ) %>")
    assert exc_info.value.line == 1


def test_code_builder_line_map():
    builder = CodeBuilder(parse("a<%= b %>")).build()

    assert len(builder.line_map) == len(builder.source.splitlines())
    assert builder.line_map[0] == 0
    assert set(builder.line_map[1:]) == {1}


def test_multiline_string_interpolation_kept_verbatim():
    assert Template('<%= """a\n    b""" %>').render() == "a\n    b"


def test_multiline_string_inside_block():
    template = Template('<% if True: %><%= """x\n  y""" %><% end %>')
    assert template.render() == "x\n  y"


def test_self_is_the_render_context():
    ctx = BasicContext(title="old")
    template = Template("<% self.title = 'new' %><%= title %>|<%-> self.title %>")

    assert template.render(ctx) == "new|new"
    assert ctx.title == "new"
