"""Sample domains category and providers used across the test suite."""

from __future__ import annotations

from provision_sdk import (
    AboutData,
    BaseCategory,
    BaseProvider,
    DataSet,
    FunctionSignature,
    HasSystemInfo,
    LogsDebugData,
    ProvisionFunctionError,
    ResultData,
    Rules,
    StoresFiles,
)
from provision_sdk.dataset.examples import RegisterParameterSet


class RenewParameterSet(DataSet):
    @classmethod
    def rules(cls) -> Rules:
        return Rules({
            "domain": ["required", "domain_name"],
            "renew_years": ["required", "integer", "between:1,10"],
        })

    @property
    def domain(self) -> str:
        return self.get("domain")


class RenewResult(ResultData):
    @classmethod
    def rules(cls) -> Rules:
        return Rules({
            "domain": ["required", "domain_name"],
            "expires_at": ["required", "date"],
        })


class RegistrarXConfiguration(DataSet):
    @classmethod
    def rules(cls) -> Rules:
        return Rules({
            "api_key": ["required", "string"],
            "sandbox": ["boolean"],
        })

    @property
    def api_key(self) -> str:
        return self.get("api_key")


class DomainsCategory(BaseCategory):
    FUNCTIONS = {
        "register": FunctionSignature(RegisterParameterSet, ResultData),
        "renew": (RenewParameterSet, RenewResult),
    }

    @classmethod
    def about_category(cls) -> AboutData:
        return AboutData.create({"name": "Domains", "description": "Register and manage domain names"})


class RegistrarX(BaseProvider, DomainsCategory, LogsDebugData):
    """Registrar whose behaviour is steered by the requested SLD."""

    CONFIGURATION = RegistrarXConfiguration

    @classmethod
    def about_provider(cls) -> AboutData:
        return AboutData.create({"name": "Registrar X", "description": "Sample registrar"})

    def register(self, params: RegisterParameterSet):
        if params.sld == "taken":
            return self.error_result("Domain name is not available", {"domain": params.domain}, {"api": "taken"})
        if params.sld == "broken":
            raise ValueError("Unexpected registry response")
        if params.sld == "crash":
            return params.sld + 1
        if params.sld == "rejected":
            raise ProvisionFunctionError("Registry rejected the request").with_data({"reason": "policy"})
        if params.sld == "timeout":
            try:
                raise ConnectionError("Read timed out")
            except ConnectionError as e:
                return self.error_result("Registry did not respond", previous=e)
        if params.sld == "interrupt":
            raise KeyboardInterrupt

        self.logger.debug(f"Registering {params.domain}")
        return self.ok_result("Domain registered", {"domain": params.domain})

    def renew(self, params: RenewParameterSet):
        if params.domain == "unknown.com":
            return {"domain": params.domain}
        return {"domain": params.domain, "expires_at": "2030-01-01"}


class IncompleteRegistrar(BaseProvider, DomainsCategory):
    """Registrar which never implemented renewals."""

    @classmethod
    def about_provider(cls) -> AboutData:
        return AboutData.create({"name": "Incomplete", "description": "Only registers"})

    def register(self, params: RegisterParameterSet):
        return {"domain": params.domain}


class UnfinishedRegistrar(BaseProvider, DomainsCategory):
    """Provider without about data, so it cannot be instantiated."""


class HostingCategory(BaseCategory):
    FUNCTIONS = {
        "create": FunctionSignature("sample_domains:MissingParameterSet", "builtins:dict"),
        "suspend": None,
    }

    @classmethod
    def about_category(cls) -> AboutData:
        return AboutData.create({"name": "Hosting", "description": "Web hosting accounts"})


class HostingProvider(BaseProvider, HostingCategory, StoresFiles, HasSystemInfo):
    @classmethod
    def about_provider(cls) -> AboutData:
        return AboutData.create({"name": "Hosting Provider", "description": "Sample host"})

    def create(self, params):
        return self.ok_result("Created", {"storage": self.storage.path, "ips": self.system_info.outgoing_ips})

    def suspend(self, params):
        return None
