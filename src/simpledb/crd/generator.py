"""CRD generation from pydantic models for GitOps and in-cluster use."""

import copy
import hashlib
import json
import logging
from pathlib import Path
import yaml

from .registry import CRDRegistry

logger = logging.getLogger(__name__)

# Schema keywords carried over from pydantic to OpenAPI v3
PASSTHROUGH_KEYWORDS = ("description", "default", "enum", "minimum", "maximum")

CONDITION_SCHEMA = {
    "type": "object",
    "properties": {
        "type": {"type": "string"},
        "status": {"type": "string", "enum": ["True", "False", "Unknown"]},
        "reason": {"type": "string"},
        "message": {"type": "string"},
        "lastTransitionTime": {"type": "string", "format": "date-time"},
    },
    "required": ["type", "status", "reason", "message", "lastTransitionTime"],
}

STATUS_SCHEMA = {
    "type": "object",
    "properties": {
        "conditions": {
            "type": "array",
            "items": CONDITION_SCHEMA,
            # at most one condition per type
            "x-kubernetes-list-type": "map",
            "x-kubernetes-list-map-keys": ["type"],
        },
    },
    "x-kubernetes-preserve-unknown-fields": True,
}

PRINTER_COLUMNS = [
    {
        "name": "Status",
        "type": "string",
        "jsonPath": ".status.conditions[?(@.type=='Ready')].status",
    },
    {"name": "Age", "type": "date", "jsonPath": ".metadata.creationTimestamp"},
]


class OpenAPIConverter:
    """Convert pydantic schemas to OpenAPI v3 compatible schemas for CRDs."""

    @staticmethod
    def convert_schema(pydantic_schema):
        """Convert a pydantic JSON schema to an OpenAPI v3 object schema."""
        openapi_schema = {
            "type": "object",
            "properties": OpenAPIConverter._convert_properties(
                pydantic_schema.get("properties", {}), pydantic_schema.get("$defs", {})
            ),
        }
        if "required" in pydantic_schema:
            openapi_schema["required"] = pydantic_schema["required"]
        return openapi_schema

    @staticmethod
    def _convert_properties(properties, defs):
        return {
            name: OpenAPIConverter._convert_property(schema, defs)
            for name, schema in properties.items()
        }

    @staticmethod
    def _convert_property(prop_schema, defs):
        """Convert a single property schema."""
        if "$ref" in prop_schema:
            def_name = prop_schema["$ref"].replace("#/$defs/", "")
            if def_name in defs:
                return OpenAPIConverter._convert_property(defs[def_name], defs)

        if prop_schema.get("type") == "array":
            converted = {"type": "array"}
            if "items" in prop_schema:
                converted["items"] = OpenAPIConverter._convert_property(
                    prop_schema["items"], defs
                )
            return converted

        if prop_schema.get("type") == "object":
            converted = {"type": "object"}
            if "properties" in prop_schema:
                converted["properties"] = OpenAPIConverter._convert_properties(
                    prop_schema["properties"], defs
                )
            if "required" in prop_schema:
                converted["required"] = prop_schema["required"]
            return converted

        result = {k: prop_schema[k] for k in PASSTHROUGH_KEYWORDS if k in prop_schema}
        result["type"] = prop_schema.get("type", "object")
        if "type" not in prop_schema:
            result["x-kubernetes-preserve-unknown-fields"] = True
        return result


class SimpleDBCRDManager:
    """Generates, validates and applies the operator's CRDs."""

    def __init__(self, output_dir=None):
        self.output_dir = Path(output_dir) if output_dir else Path("crds/generated")
        self.registry = CRDRegistry()
        self.converter = OpenAPIConverter()

    def generate_all_crds(self, force=False):
        """Write CRD files, skipping the work when models are unchanged.

        Returns:
            bool: True if CRDs were generated/updated, False if no changes needed
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)

        self.registry.discover_models()
        current_hash = self._calculate_models_hash()
        hash_file = self.output_dir / ".models_hash"

        if not force and hash_file.exists():
            if hash_file.read_text().strip() == current_hash:
                logger.info("CRD models unchanged, skipping generation")
                return False

        logger.info("Generating CRDs from pydantic models...")

        crds = self.get_crds_as_dict()
        if not crds:
            logger.warning("No CRD models found to generate")
            return False

        generated_files = []
        for crd_name, crd_def in crds.items():
            filename = f"{crd_name}.yaml"
            with open(self.output_dir / filename, "w") as f:
                yaml.dump(crd_def, f, default_flow_style=False, sort_keys=False)
            generated_files.append(filename)
            logger.info(f"Generated CRD: {filename}")

        self._generate_kustomization(generated_files)
        hash_file.write_text(current_hash)

        logger.info(f"Generated {len(generated_files)} CRD files")
        return True

    def generate_crd_definition(self, model_info):
        """Build a CustomResourceDefinition document from registry info."""
        schema = model_info["model"].model_json_schema()
        spec_schema = self.converter.convert_schema(schema)
        if model_info["model"].__doc__:
            spec_schema["description"] = model_info["model"].__doc__.strip()

        return {
            "apiVersion": "apiextensions.k8s.io/v1",
            "kind": "CustomResourceDefinition",
            "metadata": {"name": f"{model_info['plural']}.{model_info['group']}"},
            "spec": {
                "group": model_info["group"],
                "versions": [
                    {
                        "name": model_info["version"],
                        "served": True,
                        "storage": True,
                        "schema": {
                            "openAPIV3Schema": {
                                "type": "object",
                                "properties": {
                                    "spec": spec_schema,
                                    "status": copy.deepcopy(STATUS_SCHEMA),
                                },
                                "required": ["spec"],
                            }
                        },
                        "subresources": {"status": {}},
                        "additionalPrinterColumns": copy.deepcopy(PRINTER_COLUMNS),
                    }
                ],
                "scope": model_info["scope"],
                "names": {
                    "plural": model_info["plural"],
                    "singular": model_info["singular"],
                    "kind": model_info["kind"],
                    "listKind": f"{model_info['kind']}List",
                },
            },
        }

    def get_crds_as_dict(self):
        """Generate all CRDs in memory, keyed by CRD name."""
        self.registry.discover_models()

        crds = {}
        for model_info in self.registry.get_all_models().values():
            crd_def = self.generate_crd_definition(model_info)
            crds[crd_def["metadata"]["name"]] = crd_def
        return crds

    def _generate_kustomization(self, filenames):
        kustomization = {
            "apiVersion": "kustomize.config.k8s.io/v1beta1",
            "kind": "Kustomization",
            "resources": sorted(filenames),
        }
        with open(self.output_dir / "kustomization.yaml", "w") as f:
            yaml.dump(kustomization, f, default_flow_style=False)
        logger.info("Generated kustomization.yaml")

    def _calculate_models_hash(self):
        """Hash of all model schemas, for change detection."""
        model_data = {}
        for model_key, model_info in sorted(self.registry.get_all_models().items()):
            model_data[model_key] = {
                "schema": model_info["model"].model_json_schema(),
                "group": model_info["group"],
                "version": model_info["version"],
                "kind": model_info["kind"],
                "scope": model_info["scope"],
            }
        model_json = json.dumps(model_data, sort_keys=True)
        return hashlib.sha256(model_json.encode()).hexdigest()

    def apply_crds_to_cluster(self):
        """Create or replace every CRD in the cluster.

        Kubernetes config must already be loaded.

        Returns:
            bool: True if at least one CRD was applied
        """
        from kubernetes import client

        api_client = client.ApiextensionsV1Api()

        applied_count = 0
        for crd_name, crd_def in self.get_crds_as_dict().items():
            try:
                existing = api_client.read_custom_resource_definition(crd_name)
                crd_def["metadata"]["resourceVersion"] = existing.metadata.resource_version
                api_client.replace_custom_resource_definition(name=crd_name, body=crd_def)
                logger.info(f"Updated CRD: {crd_name}")
            except client.exceptions.ApiException as e:
                if e.status != 404:
                    logger.error(f"Failed to apply CRD {crd_name}: {e}")
                    raise
                api_client.create_custom_resource_definition(body=crd_def)
                logger.info(f"Created CRD: {crd_name}")
            applied_count += 1

        logger.info(f"Applied {applied_count} CRDs to cluster")
        return applied_count > 0

    def validate_generated_crds(self):
        """Check that the generated files are well-formed CRD documents."""
        if not self.output_dir.exists():
            logger.error("CRD output directory does not exist")
            return False

        crd_files = [
            f for f in self.output_dir.glob("*.yaml") if f.name != "kustomization.yaml"
        ]
        if not crd_files:
            logger.error("No CRD files found to validate")
            return False

        valid_count = 0
        for crd_file in crd_files:
            with open(crd_file, "r") as f:
                try:
                    crd_def = yaml.safe_load(f)
                except yaml.YAMLError as e:
                    logger.error(f"Invalid YAML in {crd_file}: {e}")
                    continue

            if not isinstance(crd_def, dict):
                logger.error(f"Invalid YAML in {crd_file}")
                continue

            if not all(k in crd_def for k in ("apiVersion", "kind", "metadata", "spec")):
                logger.error(f"Missing required fields in {crd_file}")
                continue

            if crd_def["kind"] != "CustomResourceDefinition":
                logger.error(f"Not a CRD: {crd_file}")
                continue

            valid_count += 1
            logger.debug(f"Valid CRD: {crd_file}")

        logger.info(f"Validated {valid_count}/{len(crd_files)} CRD files")
        return valid_count == len(crd_files)
