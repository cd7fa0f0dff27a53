from django import forms

from .filters import DATE_FILTER_CHOICES


class InvoiceFilterForm(forms.Form):
    """Query-string filters for the invoice history"""
    q = forms.CharField(max_length=100, required=False)
    date_filter = forms.ChoiceField(choices=DATE_FILTER_CHOICES, required=False, initial='all')
    start = forms.DateField(required=False, widget=forms.DateInput(attrs={'type': 'date'}))
    end = forms.DateField(required=False, widget=forms.DateInput(attrs={'type': 'date'}))

    def clean_date_filter(self):
        return self.cleaned_data.get('date_filter') or 'all'

    def clean(self):
        cleaned_data = super().clean()
        start = cleaned_data.get('start')
        end = cleaned_data.get('end')
        if cleaned_data.get('date_filter') == 'custom' and start and end and start > end:
            raise forms.ValidationError('Start date must be on or before the end date')
        return cleaned_data
