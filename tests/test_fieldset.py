"""
Tests for Fieldset: field management, nesting, population and building,
plus the FieldsetRegistry.
"""

from types import SimpleNamespace

import pytest

from flask_fieldset import (
    Field,
    Fieldset,
    FormFieldsProvider,
    HierarchyError,
    InvalidField,
    UnknownField,
    get_template_preset,
)
from flask_fieldset.fieldset import DEFAULT_NAME


class UserModel:
    """Model describing its own form."""

    def form_fields(self, instance=None):
        fields = Fieldset("user")
        fields.add("name", "Name")
        fields.add("email", "E-mail", {"type": "email"})
        if instance is not None:
            fields.populate(instance)
        return fields


class TestFieldsetBasics:
    def test_default_name(self):
        assert Fieldset().name == DEFAULT_NAME
        assert Fieldset("").get_name() == DEFAULT_NAME

    def test_mapping_as_name_is_config(self):
        fieldset = Fieldset({"auto_id": True})

        assert fieldset.name == DEFAULT_NAME
        assert fieldset.get_config("auto_id") is True

    def test_renderer_is_created_lazily(self, fieldset):
        renderer = fieldset.renderer

        assert renderer is fieldset.renderer
        assert renderer.fieldset() is fieldset

    def test_config_get_and_set(self, fieldset):
        fieldset.set_config({"auto_id": True, "labels": {"required": "!"}})
        fieldset.set_config("form_method", "get")

        assert fieldset.get_config("auto_id") is True
        assert fieldset.get_config("labels.required") == "!"
        assert fieldset.get_config("missing", "fallback") == "fallback"
        assert fieldset.get_config(["form_method", "missing"]) == {
            "form_method": "get",
            "missing": None,
        }
        assert fieldset.get_config()["form_method"] == "get"


class TestFieldsetFields:
    """Test adding, looking up and removing fields"""

    def test_add_by_name(self, fieldset):
        field = fieldset.add("email", "E-mail", {"type": "email"})

        assert isinstance(field, Field)
        assert field.fieldset is fieldset
        assert field.type == "email"
        assert fieldset.field("email") is field

    def test_add_by_mapping(self, fieldset):
        field = fieldset.add({"name": "email", "label": "E-mail", "class": "wide"})

        assert field.name == "email"
        assert field.label == "E-mail"
        assert field.get_attribute("class") == "wide"

    def test_add_existing_name_returns_existing(self, fieldset):
        first = fieldset.add("email", "E-mail")

        assert fieldset.add("email", "Other") is first
        assert first.label == "E-mail"
        assert len(fieldset) == 1

    @pytest.mark.parametrize("name", ["", None, {"label": "No name"}])
    def test_add_without_name(self, fieldset, name):
        with pytest.raises(InvalidField):
            fieldset.add(name)

    def test_add_fieldset_returns_false(self, fieldset, providers):
        assert fieldset.add(Fieldset("other", providers=providers)) is False
        assert len(fieldset) == 0

    def test_add_field_instance(self, fieldset):
        field = Field("email", "E-mail")

        assert fieldset.add(field) is field
        assert field.fieldset is fieldset
        assert fieldset.field("email") is field

    def test_add_field_instance_moves_it(self, fieldset, providers):
        other = Fieldset("other", providers=providers)
        field = other.add("email")

        fieldset.add(field)

        assert "email" not in other
        assert fieldset.field("email") is field

    def test_add_field_instance_name_clash(self, fieldset):
        fieldset.add("email")

        with pytest.raises(InvalidField):
            fieldset.add(Field("email"))

    def test_field_lookup(self, fieldset):
        fieldset.add("b")
        fieldset.add("a")

        fields = fieldset.field()

        assert list(fields) == ["b", "a"]
        assert fieldset.field("missing") is None
        fields.clear()
        assert len(fieldset) == 2

    def test_iteration_and_membership(self, fieldset):
        fieldset.add("one").add("two")

        assert [field.name for field in fieldset] == ["one", "two"]
        assert "one" in fieldset
        assert "three" not in fieldset

    def test_delete(self, fieldset):
        fieldset.add("one").add("two")
        fieldset.disable("one")

        assert fieldset.delete("one") is fieldset
        assert "one" not in fieldset
        assert "one" not in fieldset.disabled
        fieldset.delete("missing")
        assert len(fieldset) == 1

    def test_deleted_field_is_released(self, fieldset):
        field = fieldset.add("one")

        fieldset.delete("one")

        assert field.fieldset is None
        with pytest.raises(InvalidField):
            field.build()

    def test_deleted_field_can_be_added_again(self, fieldset, providers):
        field = fieldset.add("one")
        fieldset.delete("one")
        other = Fieldset("other", providers=providers)

        other.add(field)

        assert field.fieldset is other
        assert "one" not in fieldset

    def test_disable_and_enable(self, fieldset):
        fieldset.add("email")

        fieldset.disable("email")
        assert "email" in fieldset.disabled
        fieldset.enable("email")
        assert "email" not in fieldset.disabled

    @pytest.mark.parametrize("method", ["enable", "disable"])
    def test_toggle_unknown_field(self, fieldset, method):
        with pytest.raises(UnknownField):
            getattr(fieldset, method)("missing")


class TestFieldsetModels:
    """Test adding fields described by a model"""

    def test_model_is_form_fields_provider(self):
        assert isinstance(UserModel(), FormFieldsProvider)
        assert not isinstance(object(), FormFieldsProvider)

    def test_add_model(self, fieldset):
        fieldset.add_model(UserModel())

        assert [field.name for field in fieldset] == ["name", "email"]
        assert all(field.fieldset is fieldset for field in fieldset)

    def test_add_model_with_instance(self, fieldset):
        fieldset.add_model(UserModel(), {"name": "Ann"})

        assert fieldset.field("name").value == "Ann"
        assert fieldset.field("email").value is None

    def test_add_model_replaces_fields(self, fieldset):
        old = fieldset.add("name", "Old")

        fieldset.add_model(UserModel())

        assert fieldset.field("name") is not old
        assert fieldset.field("name").label == "Name"
        assert len(fieldset) == 2
        assert old.fieldset is None

    def test_add_model_rejects_plain_objects(self, fieldset):
        with pytest.raises(TypeError):
            fieldset.add_model(object())


class TestFieldsetHierarchy:
    """Test parent/child links between fieldsets"""

    def test_set_parent(self, providers):
        parent = Fieldset("parent", providers=providers)
        child = Fieldset("child", providers=providers)

        assert child.set_parent(parent) is child
        assert child.parent is parent
        assert parent.children() == [child]
        assert child.wrapper_tag == "fieldset"

    def test_set_parent_keeps_custom_tag(self, providers):
        parent = Fieldset("parent", providers=providers)
        child = Fieldset("child", providers=providers).set_fieldset_tag("div")

        child.set_parent(parent)

        assert child.wrapper_tag == "div"

    def test_self_as_parent(self, fieldset):
        with pytest.raises(HierarchyError):
            fieldset.set_parent(fieldset)

    def test_second_parent(self, providers):
        child = Fieldset("child", providers=providers)
        child.set_parent(Fieldset("first", providers=providers))

        with pytest.raises(HierarchyError):
            child.set_parent(Fieldset("second", providers=providers))

    def test_cycle_is_rejected(self, providers):
        a = Fieldset("a", providers=providers)
        b = Fieldset("b", providers=providers).set_parent(a)
        c = Fieldset("c", providers=providers).set_parent(b)

        with pytest.raises(HierarchyError):
            a.set_parent(c)
        assert a.parent is None
        assert c.children() == []

    def test_direct_child_as_parent(self, providers):
        parent = Fieldset("parent", providers=providers)
        child = Fieldset("child", providers=providers).set_parent(parent)

        with pytest.raises(HierarchyError):
            parent.set_parent(child)


class TestFieldsetPopulate:
    """Test setting values from input mappings, objects and the request"""

    def test_populate_from_mapping(self, fieldset):
        fieldset.add("name").add("addr[city]").add("addr[zip]")

        fieldset.populate({"name": "Ann", "addr.city": "Paris", "zip": "75001"})

        assert fieldset.field("name").value == "Ann"
        assert fieldset.field("addr[city]").value == "Paris"
        assert fieldset.field("addr[zip]").value == "75001"

    def test_populate_keeps_missing_values(self, fieldset):
        fieldset.add("name", "", {"value": "Default"})

        fieldset.populate({"other": "x"})

        assert fieldset.field("name").value == "Default"

    def test_populate_from_object(self, fieldset):
        fieldset.add("name").add("user[email]").add("age")

        fieldset.populate(SimpleNamespace(name="Ann", email="ann@example.com"))

        assert fieldset.field("name").value == "Ann"
        assert fieldset.field("user[email]").value == "ann@example.com"
        assert fieldset.field("age").value is None

    @pytest.mark.parametrize("input", ["hello", b"hello", ["a", "b"], ("a",), {"a"}])
    def test_populate_ignores_strings_and_containers(self, fieldset, input):
        fieldset.add("upper").add("count").add("index")

        fieldset.populate(input)

        assert all(field.value is None for field in fieldset)

    def test_populate_checks_single_checkbox(self, fieldset):
        field = fieldset.add("agree", "", {"type": "checkbox", "value": "yes"})

        fieldset.populate({"agree": "yes"})

        assert field.value == "yes"
        assert field.get_attribute("checked") == "checked"

    def test_repopulate(self, fieldset, request_input):
        fieldset.add("email").add("csrf_token", "", {"type": "hidden", "value": "t"})
        fieldset.add("_token", "", {"type": "hidden", "value": "t"})
        request_input.data.update(
            {"email": "ann@example.com", "csrf_token": "forged", "_token": "forged"}
        )

        fieldset.repopulate()

        assert fieldset.field("email").value == "ann@example.com"
        assert fieldset.field("csrf_token").value == "t"
        assert fieldset.field("_token").value == "t"

    def test_populate_then_repopulate(self, fieldset, request_input):
        fieldset.add("name").add("city")
        request_input.data["city"] = "Lyon"

        fieldset.populate({"name": "Ann", "city": "Paris"}, repopulate=True)

        assert fieldset.field("name").value == "Ann"
        assert fieldset.field("city").value == "Lyon"


class TestFieldsetBuild:
    """Test rendering complete forms"""

    def test_build_form(self, fieldset):
        fieldset.add("email", "E-mail")

        html = fieldset.build()

        assert html.startswith(
            "\n\t\t"
            '<form accept-charset="utf-8" action="http://localhost/form" method="post">\n'
            '<input name="csrf_token" type="hidden" value="token" />\n'
            "\n\t\t<table>\n"
        )
        assert '<input name="email" type="text" value="" />' in html
        assert html.endswith("\n\t\t</table>\n\t\t</form>\n\n")

    def test_build_with_action(self, fieldset):
        html = fieldset.build("/submit")

        assert 'action="/submit"' in html

    def test_build_with_form_attributes(self, fieldset):
        fieldset.renderer.set_attribute("class", "login")

        html = fieldset.build()

        assert (
            '<form accept-charset="utf-8" action="http://localhost/form" '
            'class="login" method="post">'
        ) in html

    def test_build_skips_disabled_fields(self, fieldset):
        fieldset.add("email").add("phone")
        fieldset.disable("phone")

        html = fieldset.build()

        assert 'name="email"' in html
        assert 'name="phone"' not in html

    def test_build_keeps_field_order(self, fieldset):
        fieldset.add("b").add("a")

        html = fieldset.build()

        assert html.index('name="b"') < html.index('name="a"')

    def test_build_nested_fieldset(self, fieldset, providers):
        fieldset.add("name")
        child = Fieldset("address", providers=providers).set_parent(fieldset)
        child.set_config("form_attributes", {"legend": "Address"})
        child.add("city")

        html = fieldset.build()

        assert html.count("<form") == 1
        assert (
            '\n\t\t<tr><td colspan="2"><fieldset>\n<legend>Address</legend><table>\n'
        ) in html
        assert "</table></fieldset></td></tr>\n" in html
        assert html.index('name="name"') < html.index("<fieldset>")
        assert html.index("<fieldset>") < html.index('name="city"')

    def test_build_custom_wrapper_tag(self, fieldset):
        fieldset.set_fieldset_tag("div").set_config("form_attributes", {"class": "box"})
        fieldset.add("name")

        html = fieldset.build()

        assert '<div class="box">' in html
        assert "</div>" in html
        assert "<form" not in html

    def test_build_with_template_preset(self, fieldset):
        fieldset.set_config(get_template_preset("div"))
        fieldset.add("name", "Name")

        html = fieldset.build()

        assert '<div class="form-field" id="col_name">' in html
        assert "<table>" not in html

    def test_str_reports_errors(self, fieldset):
        fieldset.add("x", "", {"type": "bogus"})

        assert str(fieldset) == "&#34;bogus&#34; is not a valid input type."

    def test_html_protocol(self, fieldset):
        fieldset.add("name")

        assert fieldset.__html__() == fieldset.build()


class TestFieldsetRegistry:
    def test_forge_returns_shared_instance(self, registry):
        login = registry.forge("login")

        assert registry.forge("login") is login
        assert login.name == "login"
        assert login.providers is registry.providers

    def test_forge_with_config(self, registry):
        fieldset = registry.forge("search", {"form_method": "get"})

        assert fieldset.get_config("form_method") == "get"

    def test_default_instance(self, registry):
        default = registry.instance()

        assert default.name == DEFAULT_NAME
        assert registry.instance() is default
        assert registry.forge() is default
        assert registry.forge("") is default

    def test_instance_by_name(self, registry):
        login = registry.forge("login")

        assert registry.instance("login") is login
        assert registry.instance("missing") is None

    def test_drop(self, registry):
        registry.forge("login")
        default = registry.instance()

        registry.drop("login")
        registry.drop(DEFAULT_NAME)

        assert "login" not in registry
        assert len(registry) == 0
        assert registry.instance() is not default

    def test_iteration(self, registry):
        registry.forge("a")
        registry.forge("b")

        assert list(registry) == ["a", "b"]
        assert "a" in registry
